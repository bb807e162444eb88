from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pulse.core.database import AlertChannel, Base, MaintenanceWindow, Service, service_alert_channels, utcnow
from pulse.services.store import SqlMonitorStore


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine so concurrent sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pulse-test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def store(session_factory):
    return SqlMonitorStore(session_factory)


@pytest_asyncio.fixture
async def add_service(session_factory):
    """Insert a Service row; next_check defaults to one minute ago (due)."""

    async def _add(**fields) -> Service:
        fields.setdefault("name", "svc")
        fields.setdefault("type", "http")
        fields.setdefault("url", "http://target/ok")
        fields.setdefault("next_check", utcnow() - timedelta(minutes=1))
        service = Service(**fields)
        async with session_factory() as session:
            session.add(service)
            await session.commit()
            await session.refresh(service)
        return service

    return _add


@pytest_asyncio.fixture
async def add_channel(session_factory):
    """Insert an AlertChannel and link it to the given service ids."""

    async def _add(type: str, config: dict, service_ids=(), name: str | None = None, is_active: bool = True):
        channel = AlertChannel(name=name or f"{type}-channel", type=type, config=config, is_active=is_active)
        async with session_factory() as session:
            session.add(channel)
            await session.flush()
            for service_id in service_ids:
                await session.execute(
                    service_alert_channels.insert().values(service_id=service_id, alert_channel_id=channel.id)
                )
            await session.commit()
            await session.refresh(channel)
        return channel

    return _add


@pytest_asyncio.fixture
async def add_window(session_factory):
    """Insert a maintenance window around now for a service."""

    async def _add(service_id: str, start_offset: timedelta = timedelta(hours=-1), end_offset: timedelta = timedelta(hours=1)):
        now = utcnow()
        window = MaintenanceWindow(
            service_id=service_id,
            title="Planned upgrade",
            start_time=now + start_offset,
            end_time=now + end_offset,
        )
        async with session_factory() as session:
            session.add(window)
            await session.commit()
            await session.refresh(window)
        return window

    return _add


@pytest_asyncio.fixture
async def hooks_client():
    """httpx client routed in-process to the fake HTTP targets and webhook receivers."""
    from tests.mocks.fake_endpoints import app as fake_app, received

    received.clear()
    async with AsyncClient(transport=ASGITransport(app=fake_app), base_url="http://hooks") as client:
        yield client


@pytest_asyncio.fixture
async def app_with_db(store, hooks_client):
    """FastAPI app wired to the test database; alert senders reach the fake receivers."""
    from pulse.main import app, wire_engine

    wire_engine(app, store, hooks_client)
    yield app


@pytest_asyncio.fixture
async def client(app_with_db):
    transport = ASGITransport(app=app_with_db)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
