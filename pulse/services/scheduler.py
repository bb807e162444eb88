"""One scheduling pass: probe due services, record observations, drive incidents and alerts."""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import timedelta

import structlog

from pulse.config import settings
from pulse.core.database import Service, utcnow
from pulse.core.exceptions import StoreUnavailableError
from pulse.services.alerts import AlertDispatcher, AlertPayload
from pulse.services.alerts.base import isoformat
from pulse.services.checks import Probe, resolve_timeout, run_check
from pulse.services.checks.base import CheckResult, down, elapsed_ms, timeout_message, up
from pulse.services.incidents import IncidentTracker
from pulse.services.store import MonitorStore

logger = structlog.get_logger()

# Backstop on top of each probe's own timeout, for drivers that overrun it.
PROBE_GRACE_SECONDS = 5.0


@dataclass
class ServiceRunResult:
    service_id: str
    service_name: str
    status: str  # "up" | "down" | "error"
    response_time: int
    status_changed: bool = False
    alerts_sent: int = 0


@dataclass
class RunSummary:
    checked: int
    results: list[ServiceRunResult] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def message(self) -> str:
        if self.checked == 0:
            return "No services due for checking"
        return f"Checked {self.checked} services"


class CheckScheduler:
    """Runs bounded, stateless batches of due checks against the store."""

    def __init__(
        self,
        store: MonitorStore,
        tracker: IncidentTracker,
        dispatcher: AlertDispatcher,
        batch_size: int | None = None,
        probe: Probe | None = None,
        grace_seconds: float = PROBE_GRACE_SECONDS,
    ):
        self._store = store
        self._tracker = tracker
        self._dispatcher = dispatcher
        self._batch_size = batch_size or settings.pulse_batch_size
        self._probe = probe
        self._grace = grace_seconds

    async def run_pass(self) -> RunSummary:
        """Check every due service in one batch. Raises StoreUnavailableError if none can be listed."""
        start = time.perf_counter()
        try:
            services = await self._store.list_due_services(self._batch_size, utcnow())
        except Exception as exc:
            logger.exception("due_services_fetch_failed")
            raise StoreUnavailableError(
                details={"reason": str(exc), "suggestion": "Check database connectivity and retry the scheduling pass."}
            ) from exc

        if not services:
            return RunSummary(checked=0, duration_ms=elapsed_ms(start))

        results = await asyncio.gather(*(self._process(service) for service in services))
        summary = RunSummary(checked=len(results), results=list(results), duration_ms=elapsed_ms(start))
        logger.info(
            "check_pass_completed",
            checked=summary.checked,
            down=sum(1 for r in results if r.status == "down"),
            errors=sum(1 for r in results if r.status == "error"),
            transitions=sum(1 for r in results if r.status_changed),
            duration_ms=summary.duration_ms,
        )
        return summary

    async def record_push(self, service: Service) -> ServiceRunResult:
        """Record an externally pushed heartbeat through the normal transition path."""
        previous = await self._store.get_last_status(service.id)
        return await self._record(service, previous, up(0, "Heartbeat received"))

    async def _process(self, service: Service) -> ServiceRunResult:
        try:
            previous = await self._store.get_last_status(service.id)
            result = await self._run_probe(service)
            return await self._record(service, previous, result)
        except Exception:
            logger.exception("service_check_failed", service_id=service.id, service=service.name)
            return ServiceRunResult(service_id=service.id, service_name=service.name, status="error", response_time=0)

    async def _run_probe(self, service: Service) -> CheckResult:
        timeout = resolve_timeout(service)
        probe = self._probe(service, timeout) if self._probe else run_check(service)
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(probe, timeout=timeout + self._grace)
        except asyncio.TimeoutError:
            logger.warning("probe_deadline_exceeded", service_id=service.id, timeout=timeout)
            return down(elapsed_ms(start), timeout_message(timeout))

    async def _record(self, service: Service, previous: str | None, result: CheckResult) -> ServiceRunResult:
        try:
            await self._store.insert_heartbeat(
                service.id, result.status, result.response_time_ms, result.status_code, result.message
            )
        except Exception:
            logger.exception("heartbeat_insert_failed", service_id=service.id)

        interval = service.interval_seconds or settings.pulse_default_interval_seconds
        try:
            await self._store.update_next_check(service.id, utcnow() + timedelta(seconds=interval))
        except Exception:
            logger.exception("next_check_update_failed", service_id=service.id)

        status_changed = previous is not None and previous != result.status
        logger.info(
            "check_completed",
            service_id=service.id,
            service=service.name,
            type=service.type,
            status=result.status,
            response_time_ms=result.response_time_ms,
            status_changed=status_changed,
        )

        alerts_sent = 0
        if status_changed:
            alerts_sent = await self._handle_transition(service, result)

        return ServiceRunResult(
            service_id=service.id,
            service_name=service.name,
            status=result.status,
            response_time=result.response_time_ms,
            status_changed=status_changed,
            alerts_sent=alerts_sent,
        )

    async def _handle_transition(self, service: Service, result: CheckResult) -> int:
        if result.status == "down":
            incident = await self._tracker.open_incident(service, result.message)
        else:
            incident = await self._tracker.close_incident(service.id)

        payload = AlertPayload(
            service=service,
            status=result.status,
            message=result.message,
            response_time_ms=result.response_time_ms,
            timestamp=isoformat(utcnow()),
            incident=incident,
        )
        dispatch = await self._dispatcher.send_alerts(payload)
        return dispatch.sent
