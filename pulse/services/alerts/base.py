"""Alert payload, results and the sender interface shared by every channel type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from pulse.core.database import Incident, Service
from pulse.schemas.channels import Channel

DOWN_COLOR_HEX = "#ef4444"
UP_COLOR_HEX = "#10b981"


@dataclass
class AlertPayload:
    """One status-transition event to deliver to every linked channel."""

    service: Service
    status: str  # "up" | "down"
    message: str
    response_time_ms: int
    timestamp: str  # ISO 8601
    incident: Incident | None = None

    @property
    def is_down(self) -> bool:
        return self.status == "down"

    @property
    def target(self) -> str | None:
        return self.service.url or self.service.hostname

    @property
    def downtime_seconds(self) -> int | None:
        """Closed incident duration, only meaningful on recovery."""
        if self.is_down or self.incident is None:
            return None
        return self.incident.duration_seconds


@dataclass
class SendResult:
    success: bool
    error: str | None = None


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    skipped_for_maintenance: bool = False


def format_duration(seconds: int) -> str:
    """Human-readable downtime: 45s, 5m 12s, 2h 3m."""
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def display_time(timestamp: str) -> str:
    """Render an ISO timestamp for message bodies."""
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def failure_from_response(prefix: str, response: httpx.Response) -> SendResult:
    return SendResult(success=False, error=f"{prefix} returned {response.status_code}: {response.text}")


class AlertSender(ABC):
    """Delivers an alert to one channel type."""

    channel_type: str

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    @abstractmethod
    async def send(self, channel: Channel, payload: AlertPayload) -> SendResult:
        """Deliver the alert. Transport errors are returned, not raised."""
