from pulse.schemas.base import ApiModel


class ServiceRunResultResponse(ApiModel):
    service_id: str
    service_name: str
    status: str  # "up", "down" or "error"
    response_time: int
    status_changed: bool
    alerts_sent: int


class CheckRunResponse(ApiModel):
    message: str
    checked: int
    results: list[ServiceRunResultResponse] = []
    duration: int  # milliseconds
