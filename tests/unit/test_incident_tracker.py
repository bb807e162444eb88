from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from pulse.core.database import Service, utcnow
from pulse.services.incidents import IncidentTracker
from tests.mocks.fake_store import InMemoryStore


def _service() -> Service:
    return Service(id="svc-1", name="api", type="http", url="http://api", next_check=utcnow())


@pytest.mark.asyncio
class TestIncidentTracker:
    async def test_open_then_close_computes_floor_duration(self):
        store = InMemoryStore([_service()])
        tracker = IncidentTracker(store)

        incident = await tracker.open_incident(_service(), "Unexpected status: 500")
        assert incident.cause == "Unexpected status: 500"
        incident.started_at = utcnow() - timedelta(seconds=90, milliseconds=700)

        closed = await tracker.close_incident("svc-1")
        assert closed.id == incident.id
        assert closed.duration_seconds == 90
        assert closed.ended_at is not None

    async def test_close_without_open_incident_is_noop(self):
        store = InMemoryStore([_service()])
        tracker = IncidentTracker(store)

        assert await tracker.close_incident("svc-1") is None
        await tracker.open_incident(_service(), "down")
        assert await tracker.close_incident("svc-1") is not None
        assert await tracker.close_incident("svc-1") is None
        assert len(store.incidents) == 1

    async def test_open_swallows_store_errors(self):
        store = InMemoryStore()
        store.insert_incident = AsyncMock(side_effect=ConnectionError("db gone"))
        tracker = IncidentTracker(store)
        assert await tracker.open_incident(_service(), "down") is None

    async def test_acknowledge(self):
        store = InMemoryStore([_service()])
        tracker = IncidentTracker(store)
        incident = await tracker.open_incident(_service(), "down")
        acked = await tracker.acknowledge(incident.id, "alice")
        assert acked.acknowledged is True
        assert await tracker.acknowledge("nope") is None

    async def test_close_swallows_store_errors(self):
        store = InMemoryStore([_service()])
        store.find_open_incident = AsyncMock(side_effect=ConnectionError("db gone"))
        tracker = IncidentTracker(store)
        assert await tracker.close_incident("svc-1") is None
