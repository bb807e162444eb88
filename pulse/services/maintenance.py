from datetime import datetime

import structlog

from pulse.core.database import utcnow
from pulse.services.store import MonitorStore

logger = structlog.get_logger()


class MaintenanceGate:
    """Answers whether alerts for a service are currently suppressed."""

    def __init__(self, store: MonitorStore):
        self._store = store

    async def is_in_maintenance(self, service_id: str, now: datetime | None = None) -> bool:
        now = now or utcnow()
        try:
            windows = await self._store.list_active_maintenance_windows(service_id, now)
        except Exception:
            # Unknown maintenance state: let alerts through rather than drop them.
            logger.exception("maintenance_lookup_failed", service_id=service_id)
            return False
        return len(windows) > 0
