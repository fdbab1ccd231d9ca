"""
FastAPI application entry point.

Read-only status surface for dashboards. The scheduler is the only writer.

Usage:
    uvicorn chainsync.api.main:app --host 127.0.0.1 --port 8010
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from chainsync import __version__
from chainsync.infra.settings import load_settings

from ._store_state import init_store, is_initialized
from .routers import endpoints, status
from .schemas import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store from settings unless the host process already did."""
    if not is_initialized():
        init_store(load_settings().db_path)
    yield


tags_metadata = [
    {
        "name": "status",
        "description": "Job status snapshots - running flag, last outcome and next run per job",
    },
    {
        "name": "endpoints",
        "description": "Endpoint weights - traffic share computed from request history and staleness",
    },
]

app = FastAPI(
    title="chainsync status API",
    lifespan=lifespan,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


app.include_router(status.router, prefix="/status", tags=["status"])
app.include_router(endpoints.router, prefix="/endpoints", tags=["endpoints"])
