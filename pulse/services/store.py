"""Durable store for services, observations, incidents, maintenance windows and channels."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from pulse.core.database import (
    AlertChannel,
    Heartbeat,
    Incident,
    MaintenanceWindow,
    Service,
    service_alert_channels,
    utcnow,
)
from pulse.schemas.channels import Channel, InvalidChannel, parse_channel

logger = structlog.get_logger()


def _utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _normalize_service(service: Service) -> Service:
    service.next_check = _utc(service.next_check)
    service.created_at = _utc(service.created_at)
    return service


def _normalize_incident(incident: Incident) -> Incident:
    incident.started_at = _utc(incident.started_at)
    incident.ended_at = _utc(incident.ended_at)
    incident.acknowledged_at = _utc(incident.acknowledged_at)
    return incident


def _normalize_heartbeat(heartbeat: Heartbeat) -> Heartbeat:
    heartbeat.created_at = _utc(heartbeat.created_at)
    return heartbeat


def _normalize_window(window: MaintenanceWindow) -> MaintenanceWindow:
    window.start_time = _utc(window.start_time)
    window.end_time = _utc(window.end_time)
    window.created_at = _utc(window.created_at)
    return window


class MonitorStore(ABC):
    """Operations the check engine needs from persistence."""

    # ── Scheduling & observations ──

    @abstractmethod
    async def list_due_services(self, limit: int, now: datetime | None = None) -> list[Service]:
        """Active, unpaused services with next_check <= now, oldest-due first."""

    @abstractmethod
    async def insert_heartbeat(
        self,
        service_id: str,
        status: str,
        response_time_ms: int | None,
        status_code: int | None = None,
        message: str | None = None,
    ) -> Heartbeat: ...

    @abstractmethod
    async def update_next_check(self, service_id: str, next_check: datetime) -> None: ...

    @abstractmethod
    async def get_last_status(self, service_id: str) -> str | None:
        """Status of the most recent heartbeat, or None when there is none."""

    # ── Incidents ──

    @abstractmethod
    async def insert_incident(self, service_id: str, started_at: datetime, cause: str | None) -> Incident: ...

    @abstractmethod
    async def find_open_incident(self, service_id: str) -> Incident | None: ...

    @abstractmethod
    async def close_incident(
        self, incident_id: str, ended_at: datetime, duration_seconds: int
    ) -> Incident | None: ...

    # ── Maintenance & channels ──

    @abstractmethod
    async def list_active_maintenance_windows(
        self, service_id: str, now: datetime
    ) -> list[MaintenanceWindow]: ...

    @abstractmethod
    async def list_channels_for_service(self, service_id: str) -> list[Channel]:
        """Active channels linked to the service, parsed into typed configs."""

    # ── Read-side helpers for the API and CLI ──

    @abstractmethod
    async def get_service(self, service_id: str) -> Service | None: ...

    @abstractmethod
    async def list_heartbeats(
        self, service_id: str, since: datetime | None = None, limit: int = 50
    ) -> list[Heartbeat]:
        """Most recent heartbeats, returned in chronological order."""

    @abstractmethod
    async def list_incidents(self, limit: int = 100, service_id: str | None = None) -> list[Incident]: ...

    @abstractmethod
    async def acknowledge_incident(self, incident_id: str, acknowledged_by: str | None = None) -> Incident | None: ...

    @abstractmethod
    async def list_all_active_maintenance(
        self, now: datetime, service_id: str | None = None
    ) -> list[MaintenanceWindow]: ...

    @abstractmethod
    async def is_reachable(self) -> bool: ...


class SqlMonitorStore(MonitorStore):
    """MonitorStore backed by the SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def list_due_services(self, limit: int, now: datetime | None = None) -> list[Service]:
        now = now or utcnow()
        async with self._session_factory() as session:
            result = await session.execute(
                select(Service)
                .where(
                    Service.is_active == True,  # noqa: E712
                    Service.is_paused == False,  # noqa: E712
                    Service.next_check <= now,
                )
                .order_by(Service.next_check.asc())
                .limit(limit)
            )
            services = list(result.scalars().all())
        return [_normalize_service(s) for s in services]

    async def insert_heartbeat(
        self,
        service_id: str,
        status: str,
        response_time_ms: int | None,
        status_code: int | None = None,
        message: str | None = None,
    ) -> Heartbeat:
        heartbeat = Heartbeat(
            service_id=service_id,
            status=status,
            response_time_ms=response_time_ms,
            status_code=status_code,
            message=message,
            created_at=utcnow(),
        )
        async with self._session_factory() as session:
            session.add(heartbeat)
            await session.commit()
            await session.refresh(heartbeat)
        return _normalize_heartbeat(heartbeat)

    async def update_next_check(self, service_id: str, next_check: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Service).where(Service.id == service_id).values(next_check=next_check)
            )
            await session.commit()

    async def get_last_status(self, service_id: str) -> str | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(Heartbeat.status)
                .where(Heartbeat.service_id == service_id)
                .order_by(Heartbeat.id.desc())
                .limit(1)
            )

    async def insert_incident(self, service_id: str, started_at: datetime, cause: str | None) -> Incident:
        incident = Incident(service_id=service_id, started_at=started_at, cause=cause, acknowledged=False)
        async with self._session_factory() as session:
            session.add(incident)
            await session.commit()
            await session.refresh(incident)
        return _normalize_incident(incident)

    async def find_open_incident(self, service_id: str) -> Incident | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Incident)
                .where(Incident.service_id == service_id, Incident.ended_at.is_(None))
                .order_by(Incident.started_at.desc())
                .limit(1)
            )
            incident = result.scalar_one_or_none()
        return _normalize_incident(incident) if incident else None

    async def close_incident(
        self, incident_id: str, ended_at: datetime, duration_seconds: int
    ) -> Incident | None:
        return await self._update_incident(incident_id, ended_at=ended_at, duration_seconds=duration_seconds)

    async def list_active_maintenance_windows(
        self, service_id: str, now: datetime
    ) -> list[MaintenanceWindow]:
        return await self.list_all_active_maintenance(now, service_id=service_id)

    async def list_channels_for_service(self, service_id: str) -> list[Channel]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AlertChannel)
                .join(service_alert_channels, service_alert_channels.c.alert_channel_id == AlertChannel.id)
                .where(
                    service_alert_channels.c.service_id == service_id,
                    AlertChannel.is_active == True,  # noqa: E712
                )
                .order_by(AlertChannel.created_at.asc())
            )
            rows = list(result.scalars().all())

        channels = []
        for row in rows:
            channel = parse_channel(row.id, row.name, row.type, row.config)
            if isinstance(channel, InvalidChannel):
                logger.warning("alert_channel_config_invalid", channel_id=row.id, type=row.type, error=channel.error)
            channels.append(channel)
        return channels

    async def get_service(self, service_id: str) -> Service | None:
        async with self._session_factory() as session:
            service = await session.get(Service, service_id)
        return _normalize_service(service) if service else None

    async def list_heartbeats(
        self, service_id: str, since: datetime | None = None, limit: int = 50
    ) -> list[Heartbeat]:
        query = select(Heartbeat).where(Heartbeat.service_id == service_id)
        if since is not None:
            query = query.where(Heartbeat.created_at >= since)
        query = query.order_by(Heartbeat.id.desc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            heartbeats = list(result.scalars().all())
        heartbeats.reverse()
        return [_normalize_heartbeat(h) for h in heartbeats]

    async def list_incidents(self, limit: int = 100, service_id: str | None = None) -> list[Incident]:
        query = select(Incident)
        if service_id is not None:
            query = query.where(Incident.service_id == service_id)
        query = query.order_by(Incident.started_at.desc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            incidents = list(result.scalars().all())
        return [_normalize_incident(i) for i in incidents]

    async def acknowledge_incident(self, incident_id: str, acknowledged_by: str | None = None) -> Incident | None:
        return await self._update_incident(
            incident_id, acknowledged=True, acknowledged_at=utcnow(), acknowledged_by=acknowledged_by
        )

    async def list_all_active_maintenance(
        self, now: datetime, service_id: str | None = None
    ) -> list[MaintenanceWindow]:
        query = select(MaintenanceWindow).where(
            MaintenanceWindow.start_time <= now,
            MaintenanceWindow.end_time >= now,
        )
        if service_id is not None:
            query = query.where(MaintenanceWindow.service_id == service_id)
        query = query.order_by(MaintenanceWindow.start_time.asc())

        async with self._session_factory() as session:
            result = await session.execute(query)
            windows = list(result.scalars().all())
        return [_normalize_window(w) for w in windows]

    async def is_reachable(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("store_unreachable", exc_info=True)
            return False

    async def _update_incident(self, incident_id: str, **values) -> Incident | None:
        # Write before read so SQLite takes the write lock up front.
        async with self._session_factory() as session:
            result = await session.execute(update(Incident).where(Incident.id == incident_id).values(**values))
            if result.rowcount == 0:
                await session.rollback()
                return None
            incident = await session.get(Incident, incident_id)
            await session.commit()
        return _normalize_incident(incident)
