from datetime import datetime

from pulse.schemas.base import ApiModel


class IncidentResponse(ApiModel):
    id: str
    service_id: str
    started_at: datetime
    ended_at: datetime | None = None
    duration_seconds: int | None = None
    cause: str | None = None
    resolution: str | None = None
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None


class IncidentListResponse(ApiModel):
    incidents: list[IncidentResponse]
    total: int


class AcknowledgeRequest(ApiModel):
    acknowledged_by: str | None = None
