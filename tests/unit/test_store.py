"""Tests for SqlMonitorStore against a real SQLite database."""

from datetime import timedelta

import pytest

from pulse.core.database import utcnow
from pulse.schemas.channels import InvalidChannel, SlackChannel, UnknownChannel, WebhookChannel


@pytest.mark.asyncio
class TestDueServices:
    async def test_orders_oldest_due_first_and_limits(self, store, add_service):
        now = utcnow()
        newer = await add_service(name="newer", next_check=now - timedelta(seconds=5))
        oldest = await add_service(name="oldest", next_check=now - timedelta(minutes=10))
        await add_service(name="middle", next_check=now - timedelta(minutes=1))

        due = await store.list_due_services(2, now)
        assert [s.name for s in due] == ["oldest", "middle"]
        assert due[0].id == oldest.id
        assert newer.id not in {s.id for s in due}

    async def test_skips_paused_inactive_and_future(self, store, add_service):
        await add_service(name="paused", is_paused=True)
        await add_service(name="inactive", is_active=False)
        await add_service(name="future", next_check=utcnow() + timedelta(minutes=5))
        await add_service(name="due")

        due = await store.list_due_services(10)
        assert [s.name for s in due] == ["due"]

    async def test_next_check_is_timezone_aware(self, store, add_service):
        await add_service()
        (service,) = await store.list_due_services(10)
        assert service.next_check.tzinfo is not None

    async def test_update_next_check_removes_from_due(self, store, add_service):
        service = await add_service()
        await store.update_next_check(service.id, utcnow() + timedelta(seconds=60))
        assert await store.list_due_services(10) == []


@pytest.mark.asyncio
class TestHeartbeats:
    async def test_last_status_none_without_heartbeats(self, store, add_service):
        service = await add_service()
        assert await store.get_last_status(service.id) is None

    async def test_last_status_is_most_recent(self, store, add_service):
        service = await add_service()
        await store.insert_heartbeat(service.id, "up", 10, 200, "OK")
        await store.insert_heartbeat(service.id, "down", 20, 503, "Unexpected status: 503")
        assert await store.get_last_status(service.id) == "down"

    async def test_list_heartbeats_chronological_and_limited(self, store, add_service):
        service = await add_service()
        for i in range(5):
            await store.insert_heartbeat(service.id, "up", i, None, f"hb-{i}")

        rows = await store.list_heartbeats(service.id, since=utcnow() - timedelta(hours=1), limit=3)
        assert [h.message for h in rows] == ["hb-2", "hb-3", "hb-4"]
        assert rows[0].created_at.tzinfo is not None


@pytest.mark.asyncio
class TestIncidents:
    async def test_open_find_close(self, store, add_service):
        service = await add_service()
        started = utcnow() - timedelta(minutes=3)
        incident = await store.insert_incident(service.id, started, "Timeout after 10s")
        assert incident.ended_at is None

        found = await store.find_open_incident(service.id)
        assert found.id == incident.id
        assert found.started_at == started

        closed = await store.close_incident(incident.id, utcnow(), 180)
        assert closed.duration_seconds == 180
        assert closed.ended_at is not None
        assert await store.find_open_incident(service.id) is None

    async def test_close_unknown_incident_returns_none(self, store):
        assert await store.close_incident("missing", utcnow(), 1) is None

    async def test_acknowledge(self, store, add_service):
        service = await add_service()
        incident = await store.insert_incident(service.id, utcnow(), "down")
        acked = await store.acknowledge_incident(incident.id, "oncall@example.com")
        assert acked.acknowledged is True
        assert acked.acknowledged_by == "oncall@example.com"
        assert acked.acknowledged_at is not None

    async def test_list_incidents_newest_first(self, store, add_service):
        a = await add_service(name="a")
        b = await add_service(name="b")
        await store.insert_incident(a.id, utcnow() - timedelta(hours=2), "old")
        await store.insert_incident(b.id, utcnow() - timedelta(hours=1), "new")

        rows = await store.list_incidents()
        assert [i.cause for i in rows] == ["new", "old"]
        assert [i.cause for i in await store.list_incidents(service_id=a.id)] == ["old"]


@pytest.mark.asyncio
class TestMaintenanceAndChannels:
    async def test_active_windows(self, store, add_service, add_window):
        service = await add_service()
        await add_window(service.id)
        await add_window(service.id, timedelta(hours=-3), timedelta(hours=-2))

        windows = await store.list_active_maintenance_windows(service.id, utcnow())
        assert len(windows) == 1
        assert windows[0].title == "Planned upgrade"

    async def test_channels_active_only_and_typed(self, store, add_service, add_channel):
        service = await add_service()
        other = await add_service(name="other")
        await add_channel("webhook", {"url": "http://hooks/hooks/webhook"}, [service.id])
        await add_channel("slack", {"webhookUrl": "http://hooks/hooks/slack"}, [service.id])
        await add_channel("pager", {"key": "x"}, [service.id])
        await add_channel("discord", {"webhookUrl": "http://x"}, [service.id], is_active=False)
        await add_channel("email", {"to": "ops@example.com"}, [other.id])

        channels = await store.list_channels_for_service(service.id)
        kinds = {type(c) for c in channels}
        assert kinds == {WebhookChannel, SlackChannel, UnknownChannel}
        slack = next(c for c in channels if isinstance(c, SlackChannel))
        assert slack.config.webhook_url == "http://hooks/hooks/slack"

    async def test_invalid_config_is_flagged(self, store, add_service, add_channel):
        service = await add_service()
        await add_channel("webhook", {"url": "http://x", "headers": ["not", "a", "mapping"]}, [service.id])
        (channel,) = await store.list_channels_for_service(service.id)
        assert isinstance(channel, InvalidChannel)

    async def test_is_reachable(self, store):
        assert await store.is_reachable() is True
