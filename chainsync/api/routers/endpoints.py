"""
Endpoints router: current traffic weights per data-source endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Query

from ..schemas import EndpointListResponse, EndpointResponse
from .._store_state import get_store


router = APIRouter()


@router.get("", response_model=EndpointListResponse)
async def list_endpoints(
    network_family: Optional[str] = Query(default=None, description="Only this network family"),
):
    """Endpoints with their weight and last score."""
    records = get_store().list_endpoints()
    if network_family is not None:
        records = [r for r in records if r.network_family == network_family]
    return EndpointListResponse(
        endpoints=[EndpointResponse.from_record(r) for r in records],
        total=len(records),
    )
