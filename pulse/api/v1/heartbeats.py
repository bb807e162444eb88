from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends, Query

from pulse.core.database import utcnow
from pulse.core.exceptions import NotFoundError, PulseError
from pulse.dependencies import get_scheduler, get_store
from pulse.schemas.heartbeats import HeartbeatListResponse, HeartbeatPushResponse, HeartbeatResponse
from pulse.services.scheduler import CheckScheduler
from pulse.services.store import MonitorStore

router = APIRouter()

RANGES = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


@router.post("/api/services/{service_id}/heartbeat")
async def push_heartbeat(
    service_id: str,
    store: MonitorStore = Depends(get_store),
    scheduler: CheckScheduler = Depends(get_scheduler),
) -> HeartbeatPushResponse:
    """Passive heartbeat push for heartbeat-type services."""
    service = await store.get_service(service_id)
    if service is None:
        raise NotFoundError(f"Service '{service_id}' not found.")
    if service.type != "heartbeat":
        raise PulseError(
            code="invalid_service_type",
            message=f"Service '{service_id}' is a {service.type} service, not a heartbeat service.",
            status=400,
        )

    result = await scheduler.record_push(service)
    return HeartbeatPushResponse(
        service_id=service.id,
        status=result.status,
        status_changed=result.status_changed,
        alerts_sent=result.alerts_sent,
    )


@router.get("/api/services/{service_id}/heartbeats")
async def list_heartbeats(
    service_id: str,
    range: Literal["1h", "24h", "7d", "30d"] = Query("24h"),
    limit: int = Query(50, ge=1, le=100),
    store: MonitorStore = Depends(get_store),
) -> HeartbeatListResponse:
    """Recent observations for a service, oldest first."""
    if await store.get_service(service_id) is None:
        raise NotFoundError(f"Service '{service_id}' not found.")

    heartbeats = await store.list_heartbeats(service_id, since=utcnow() - RANGES[range], limit=limit)
    return HeartbeatListResponse(
        service_id=service_id,
        range=range,
        heartbeats=[HeartbeatResponse.model_validate(h) for h in heartbeats],
    )
