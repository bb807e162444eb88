from fastapi import APIRouter, Body, Depends, Query

from pulse.core.exceptions import NotFoundError
from pulse.dependencies import get_store, get_tracker
from pulse.schemas.incidents import AcknowledgeRequest, IncidentListResponse, IncidentResponse
from pulse.services.incidents import IncidentTracker
from pulse.services.store import MonitorStore

router = APIRouter()


@router.get("/api/incidents")
async def list_incidents(
    service_id: str | None = Query(None, alias="serviceId"),
    limit: int = Query(100, ge=1, le=100),
    store: MonitorStore = Depends(get_store),
) -> IncidentListResponse:
    """Most recent incidents, newest first."""
    incidents = await store.list_incidents(limit=limit, service_id=service_id)
    return IncidentListResponse(
        incidents=[IncidentResponse.model_validate(i) for i in incidents],
        total=len(incidents),
    )


@router.post("/api/incidents/{incident_id}/acknowledge")
async def acknowledge_incident(
    incident_id: str,
    body: AcknowledgeRequest | None = Body(None),
    tracker: IncidentTracker = Depends(get_tracker),
) -> IncidentResponse:
    incident = await tracker.acknowledge(incident_id, body.acknowledged_by if body else None)
    if incident is None:
        raise NotFoundError(f"Incident '{incident_id}' not found.")
    return IncidentResponse.model_validate(incident)
