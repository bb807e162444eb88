import pytest

from tests.mocks.fake_store import InMemoryStore


@pytest.mark.asyncio
class TestHealthEndpoint:
    async def test_health_ok(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["database"] == "connected"
        assert data["uptime_seconds"] >= 0

    async def test_health_degraded_when_store_unreachable(self, client, app_with_db):
        class Unreachable(InMemoryStore):
            async def is_reachable(self):
                return False

        app_with_db.state.store = Unreachable()
        data = (await client.get("/api/health")).json()
        assert data["status"] == "degraded"
        assert data["database"] == "disconnected"

    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.json() == {"service": "pulse-monitor", "version": "0.1.0"}
