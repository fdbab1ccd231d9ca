"""
Status API schemas.

Read-only views for dashboards: job status snapshots and endpoint weights.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from chainsync.scheduler.entities import EndpointRecord, StatusRecord


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class JobStatusResponse(BaseModel):
    """Snapshot of one named job."""

    name: str = Field(..., description="Job name")
    is_running: bool = Field(..., description="Whether a run is in progress")
    last_success: Optional[bool] = Field(default=None, description="Outcome of the last run, null before the first")
    next_run_at: Optional[datetime] = Field(default=None, description="Earliest time of the next run, null if due now")

    @classmethod
    def from_record(cls, record: StatusRecord) -> "JobStatusResponse":
        return cls(
            name=record.name,
            is_running=record.is_running,
            last_success=record.last_success,
            next_run_at=record.next_run_at,
        )


class JobStatusListResponse(BaseModel):
    jobs: List[JobStatusResponse] = Field(default_factory=list)
    total: int = Field(..., description="Number of status records")


class EndpointResponse(BaseModel):
    """Current weight of one endpoint."""

    id: int
    name: str
    network_family: str = Field(..., description="Group the endpoint is compared against")
    latest_block_number: int
    weight: int = Field(..., ge=0, le=100, description="Traffic weight")
    last_score: Optional[Decimal] = Field(default=None, description="Last success rate in percent")
    enabled: bool

    @classmethod
    def from_record(cls, record: EndpointRecord) -> "EndpointResponse":
        return cls(
            id=record.id,
            name=record.name,
            network_family=record.network_family,
            latest_block_number=record.latest_block_number,
            weight=record.weight,
            last_score=record.last_score,
            enabled=record.enabled,
        )


class EndpointListResponse(BaseModel):
    endpoints: List[EndpointResponse] = Field(default_factory=list)
    total: int
