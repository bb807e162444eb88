import time

from fastapi import APIRouter, Depends

from pulse.dependencies import get_store
from pulse.schemas.health import HealthResponse
from pulse.services.store import MonitorStore

router = APIRouter()

_start_time = time.monotonic()


@router.get("/api/health")
async def health_check(store: MonitorStore = Depends(get_store)) -> HealthResponse:
    """Liveness and database reachability."""
    db_ok = await store.is_reachable()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        database="connected" if db_ok else "disconnected",
        uptime_seconds=round(time.monotonic() - _start_time, 1),
    )
