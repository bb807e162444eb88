import datetime
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pulse.config import settings


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


# ── Services ─────────────────────────────────────────────────────────────────


service_alert_channels = Table(
    "service_alert_channels",
    Base.metadata,
    Column("service_id", String(36), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    Column("alert_channel_id", String(36), ForeignKey("alert_channels.id", ondelete="CASCADE"), primary_key=True),
)


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("interval_seconds BETWEEN 10 AND 3600", name="ck_services_interval"),
        CheckConstraint("timeout_seconds BETWEEN 1 AND 60", name="ck_services_timeout"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20))  # http/tcp/ping/dns/docker/ssl/heartbeat
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # http
    url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    method: Mapped[str | None] = mapped_column(String(10), nullable=True, default="GET")
    headers: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_status: Mapped[list | None] = mapped_column(JSON, nullable=True)
    keyword: Mapped[str | None] = mapped_column(String(500), nullable=True)
    verify_ssl: Mapped[bool] = mapped_column(Boolean, default=True)

    # tcp / ping / ssl / dns
    hostname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    port: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dns_record_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    dns_server: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expected_value: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ssl_expiry_warning_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # docker
    docker_host: Mapped[str | None] = mapped_column(String(500), nullable=True)
    container_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # scheduling
    interval_seconds: Mapped[int] = mapped_column(Integer, default=60)
    timeout_seconds: Mapped[int] = mapped_column(Integer, default=10)
    retries: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    next_check: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def target(self) -> str | None:
        """URL for http services, hostname for everything else."""
        return self.url or self.hostname


# ── Observations ─────────────────────────────────────────────────────────────


class Heartbeat(Base):
    __tablename__ = "heartbeats"

    # Autoincrement id is the per-service ordering used for "most recent".
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[str] = mapped_column(String(10))  # up/down
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )


# ── Incidents ────────────────────────────────────────────────────────────────


class Incident(Base):
    __tablename__ = "incidents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), index=True
    )
    started_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    ended_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cause: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    acknowledged: Mapped[bool] = mapped_column(Boolean, default=False)
    acknowledged_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledged_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.ended_at is None


# ── Maintenance Windows ──────────────────────────────────────────────────────


class MaintenanceWindow(Base):
    __tablename__ = "maintenance_windows"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_maintenance_window_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True)
    end_time: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ── Alert Channels ───────────────────────────────────────────────────────────


class AlertChannel(Base):
    __tablename__ = "alert_channels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20))  # webhook/email/slack/discord
    config: Mapped[dict] = mapped_column(JSON, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ── Engine & Session ──────────────────────────────────────────────────────────

engine = create_async_engine(settings.pulse_db_url, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Ensure database schema is up to date via Alembic migrations."""
    from pulse.core.migrations import ensure_db_migrated

    await ensure_db_migrated()


async def close_db() -> None:
    """Dispose of the engine."""
    await engine.dispose()
