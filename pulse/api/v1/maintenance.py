from fastapi import APIRouter, Depends, Query

from pulse.core.database import utcnow
from pulse.dependencies import get_store
from pulse.schemas.maintenance import ActiveMaintenanceResponse, MaintenanceWindowResponse
from pulse.services.store import MonitorStore

router = APIRouter()


@router.get("/api/maintenance/active")
async def active_maintenance(
    service_id: str | None = Query(None, alias="serviceId"),
    store: MonitorStore = Depends(get_store),
) -> ActiveMaintenanceResponse:
    """Maintenance windows in effect right now, optionally for one service."""
    windows = await store.list_all_active_maintenance(utcnow(), service_id=service_id)
    return ActiveMaintenanceResponse(
        windows=[MaintenanceWindowResponse.model_validate(w) for w in windows],
        in_maintenance=bool(windows),
    )
