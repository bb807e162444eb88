"""Incident lifecycle: one open incident per service, closed on recovery."""

import math

import structlog

from pulse.core.database import Incident, Service, utcnow
from pulse.services.store import MonitorStore

logger = structlog.get_logger()


class IncidentTracker:
    """Opens incidents on down transitions and closes them on recovery."""

    def __init__(self, store: MonitorStore):
        self._store = store

    async def open_incident(self, service: Service, cause: str | None) -> Incident | None:
        """Record a new open incident. Store failures are logged and yield None."""
        try:
            incident = await self._store.insert_incident(service.id, utcnow(), cause)
        except Exception:
            logger.exception("incident_open_failed", service_id=service.id)
            return None
        logger.warning("incident_opened", service_id=service.id, incident_id=incident.id, cause=cause)
        return incident

    async def close_incident(self, service_id: str) -> Incident | None:
        """Close the latest open incident; None when nothing is open or the store fails."""
        try:
            open_incident = await self._store.find_open_incident(service_id)
            if open_incident is None:
                return None

            ended_at = utcnow()
            duration = math.floor((ended_at - open_incident.started_at).total_seconds())
            closed = await self._store.close_incident(open_incident.id, ended_at, max(0, duration))
        except Exception:
            logger.exception("incident_close_failed", service_id=service_id)
            return None
        logger.info(
            "incident_closed",
            service_id=service_id,
            incident_id=open_incident.id,
            duration_seconds=duration,
        )
        return closed

    async def acknowledge(self, incident_id: str, acknowledged_by: str | None = None) -> Incident | None:
        incident = await self._store.acknowledge_incident(incident_id, acknowledged_by)
        if incident is not None:
            logger.info("incident_acknowledged", incident_id=incident_id, by=acknowledged_by)
        return incident
