import hmac

from fastapi import Request

from pulse.config import settings
from pulse.core.exceptions import AuthenticationError
from pulse.services.incidents import IncidentTracker
from pulse.services.scheduler import CheckScheduler
from pulse.services.store import MonitorStore


def get_store(request: Request) -> MonitorStore:
    """Return the monitor store stored on app state during lifespan."""
    return request.app.state.store


def get_scheduler(request: Request) -> CheckScheduler:
    return request.app.state.scheduler


def get_tracker(request: Request) -> IncidentTracker:
    return request.app.state.tracker


def require_cron_secret(request: Request) -> None:
    """Dependency that guards the scheduling trigger when a cron secret is configured."""
    secret = settings.pulse_cron_secret
    if not secret:
        return

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing or malformed Authorization header.")

    token = auth_header.removeprefix("Bearer ").strip()
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthenticationError()
