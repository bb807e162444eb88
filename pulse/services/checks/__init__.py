"""Protocol probe drivers and the type-keyed dispatch table."""

from typing import Awaitable, Callable

import structlog

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CertificateInfo, CheckResult, down
from pulse.services.checks.dns import check_dns
from pulse.services.checks.docker import check_docker
from pulse.services.checks.heartbeat import check_heartbeat
from pulse.services.checks.http import check_http
from pulse.services.checks.ping import check_ping
from pulse.services.checks.ssl import check_ssl
from pulse.services.checks.tcp import check_tcp

logger = structlog.get_logger()

Probe = Callable[[Service, float], Awaitable[CheckResult]]

PROBES: dict[str, Probe] = {
    "http": check_http,
    "tcp": check_tcp,
    "ping": check_ping,
    "dns": check_dns,
    "docker": check_docker,
    "ssl": check_ssl,
    "heartbeat": check_heartbeat,
}


def resolve_timeout(service: Service) -> float:
    return float(service.timeout_seconds or settings.pulse_default_timeout_seconds)


async def run_check(service: Service) -> CheckResult:
    """Run the probe matching the service type under the service's own timeout."""
    probe = PROBES.get(service.type)
    if probe is None:
        logger.warning("unknown_service_type", service_id=service.id, type=service.type)
        return down(0, f"Unknown service type: {service.type}")
    try:
        return await probe(service, resolve_timeout(service))
    except Exception as exc:
        logger.exception("probe_raised", service_id=service.id, type=service.type)
        return down(0, str(exc) or type(exc).__name__)


__all__ = ["PROBES", "CertificateInfo", "CheckResult", "Probe", "resolve_timeout", "run_check"]
