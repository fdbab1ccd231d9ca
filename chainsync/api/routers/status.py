"""
Status router: job status snapshots written by the scheduler.
"""

from fastapi import APIRouter, HTTPException

from chainsync.scheduler.errors import StatusNotFoundError

from ..schemas import JobStatusListResponse, JobStatusResponse
from .._store_state import get_store


router = APIRouter()


@router.get("", response_model=JobStatusListResponse)
async def list_job_statuses():
    """All job status records, ordered by name."""
    records = get_store().list_statuses()
    return JobStatusListResponse(
        jobs=[JobStatusResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.get("/{name}", response_model=JobStatusResponse)
async def get_job_status(name: str):
    """Status of one job by name."""
    try:
        record = get_store().get_status(name)
    except StatusNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return JobStatusResponse.from_record(record)
