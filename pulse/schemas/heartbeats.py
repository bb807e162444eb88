from datetime import datetime

from pulse.schemas.base import ApiModel


class HeartbeatResponse(ApiModel):
    id: int
    service_id: str
    status: str
    response_time_ms: int | None = None
    status_code: int | None = None
    message: str | None = None
    created_at: datetime


class HeartbeatListResponse(ApiModel):
    service_id: str
    range: str
    heartbeats: list[HeartbeatResponse]


class HeartbeatPushResponse(ApiModel):
    service_id: str
    status: str
    status_changed: bool
    alerts_sent: int
