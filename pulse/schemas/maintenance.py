from datetime import datetime

from pulse.schemas.base import ApiModel


class MaintenanceWindowResponse(ApiModel):
    id: str
    service_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime


class ActiveMaintenanceResponse(ApiModel):
    windows: list[MaintenanceWindowResponse]
    in_maintenance: bool
