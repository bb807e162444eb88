"""Tests for per-channel alert formatting and delivery."""

from datetime import timedelta

import httpx
import pytest

from pulse.config import settings
from pulse.core.database import Incident, Service, utcnow
from pulse.schemas.channels import parse_channel
from pulse.services.alerts.base import AlertPayload, format_duration
from pulse.services.alerts.discord import DiscordSender, build_discord_embed
from pulse.services.alerts.email import EmailSender, build_html, build_subject
from pulse.services.alerts.slack import SlackSender, build_slack_message
from pulse.services.alerts.webhook import WebhookSender, build_webhook_body
from tests.mocks.fake_endpoints import received


def _service() -> Service:
    return Service(id="svc-1", name="Checkout API", type="http", url="https://shop.example/health")


def _down() -> AlertPayload:
    return AlertPayload(
        service=_service(),
        status="down",
        message="Unexpected status: 502",
        response_time_ms=312,
        timestamp="2026-10-19T12:00:00Z",
    )


def _recovered(duration: int = 185) -> AlertPayload:
    started = utcnow() - timedelta(seconds=duration)
    incident = Incident(
        id="inc-1", service_id="svc-1", started_at=started, ended_at=utcnow(), duration_seconds=duration
    )
    return AlertPayload(
        service=_service(),
        status="up",
        message="OK",
        response_time_ms=45,
        timestamp="2026-10-19T12:03:05Z",
        incident=incident,
    )


class TestFormatDuration:
    def test_seconds(self):
        assert format_duration(45) == "45s"

    def test_minutes(self):
        assert format_duration(312) == "5m 12s"

    def test_hours(self):
        assert format_duration(7380) == "2h 3m"


class TestPayloadBuilders:
    def test_webhook_body_down(self):
        body = build_webhook_body(_down())
        assert body["event"] == "service.down"
        assert body["service"] == {
            "id": "svc-1",
            "name": "Checkout API",
            "type": "http",
            "url": "https://shop.example/health",
        }
        assert body["responseTimeMs"] == 312
        assert "incident" not in body

    def test_webhook_body_recovery_includes_incident(self):
        body = build_webhook_body(_recovered())
        assert body["event"] == "service.up"
        assert body["incident"]["id"] == "inc-1"
        assert body["incident"]["durationSeconds"] == 185
        assert body["incident"]["endedAt"].endswith("Z")

    def test_slack_down_layout(self):
        message = build_slack_message(_down())
        attachment = message["attachments"][0]
        assert attachment["color"] == "#ef4444"
        blocks = attachment["blocks"]
        assert blocks[0]["text"]["text"] == ":red_circle: Service DOWN"
        assert len(blocks[1]["fields"]) == 4
        assert blocks[1]["fields"][1]["text"] == "*Type:*\nHTTP"
        texts = [b.get("text", {}).get("text", "") for b in blocks]
        assert "*Target:* `https://shop.example/health`" in texts
        assert not any("Downtime" in t for t in texts)
        assert blocks[-1]["type"] == "context"

    def test_slack_recovery_has_downtime(self):
        blocks = build_slack_message(_recovered())["attachments"][0]["blocks"]
        assert blocks[0]["text"]["text"] == ":large_green_circle: Service RECOVERED"
        assert any(b.get("text", {}).get("text") == "*Downtime Duration:* 3m 5s" for b in blocks)

    def test_discord_embed(self):
        down = build_discord_embed(_down())
        assert down["title"] == "🔴 Service DOWN"
        assert down["color"] == 15548997
        assert down["footer"] == {"text": "Pulse Monitor"}

        up = build_discord_embed(_recovered())
        assert up["title"] == "🟢 Service RECOVERED"
        assert up["color"] == 1100289
        names = [f["name"] for f in up["fields"]]
        assert names[:4] == ["📊 Service", "🔧 Type", "📡 Status", "⏱️ Response Time"]
        assert "⏰ Downtime Duration" in names

    def test_email_subject_and_body(self):
        assert build_subject(_down()) == "🔴 Service Down: Checkout API"
        assert build_subject(_recovered()) == "🟢 Service Recovered: Checkout API"
        html = build_html(_recovered())
        assert "Checkout API" in html
        assert "3m 5s" in html
        assert "Sent by Pulse Server Monitor" in html


@pytest.mark.asyncio
class TestSenders:
    async def test_webhook_delivery_keeps_content_type(self, hooks_client):
        channel = parse_channel(
            "c1",
            "hook",
            "webhook",
            {
                "url": "http://hooks/hooks/webhook",
                "method": "PUT",
                "headers": {"X-Token": "s3cret", "Content-Type": "text/plain"},
            },
        )
        result = await WebhookSender(hooks_client).send(channel, _down())
        assert result.success is True
        (delivery,) = received
        assert delivery["method"] == "PUT"
        assert delivery["headers"]["x-token"] == "s3cret"
        assert delivery["headers"]["content-type"] == "application/json"
        assert delivery["json"]["event"] == "service.down"

    async def test_webhook_non_2xx(self, hooks_client):
        channel = parse_channel("c1", "hook", "webhook", {"url": "http://hooks/hooks/fail"})
        result = await WebhookSender(hooks_client).send(channel, _down())
        assert result.success is False
        assert result.error == "Webhook returned 500: Internal Server Error"

    async def test_webhook_without_url(self, hooks_client):
        channel = parse_channel("c1", "hook", "webhook", {})
        result = await WebhookSender(hooks_client).send(channel, _down())
        assert result.error == "No webhook URL configured"

    async def test_slack_delivery_and_failure(self, hooks_client):
        ok = parse_channel("c2", "slack", "slack", {"webhookUrl": "http://hooks/hooks/slack"})
        bad = parse_channel("c3", "slack", "slack", {"webhookUrl": "http://hooks/hooks/fail"})
        assert (await SlackSender(hooks_client).send(ok, _down())).success is True
        failure = await SlackSender(hooks_client).send(bad, _down())
        assert failure.error == "Slack returned 500: receiver exploded"
        missing = await SlackSender(hooks_client).send(parse_channel("c4", "s", "slack", {}), _down())
        assert missing.error == "No Slack webhook URL configured"

    async def test_discord_delivery(self, hooks_client):
        channel = parse_channel("c5", "discord", "discord", {"webhookUrl": "http://hooks/hooks/discord"})
        result = await DiscordSender(hooks_client).send(channel, _recovered())
        assert result.success is True
        assert received[0]["json"]["embeds"][0]["title"] == "🟢 Service RECOVERED"

    async def test_transport_error_is_returned(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            channel = parse_channel("c6", "discord", "discord", {"webhookUrl": "http://unreachable"})
            result = await DiscordSender(client).send(channel, _down())
        assert result.success is False
        assert "Connection refused" in result.error

    async def test_email_requires_api_key(self, hooks_client, monkeypatch):
        monkeypatch.setattr(settings, "pulse_resend_api_key", None)
        channel = parse_channel("c7", "mail", "email", {"to": "ops@example.com"})
        result = await EmailSender(hooks_client).send(channel, _down())
        assert result.error == "Resend API key not configured"

    async def test_email_requires_recipient(self, hooks_client, monkeypatch):
        monkeypatch.setattr(settings, "pulse_resend_api_key", "re_test_key")
        channel = parse_channel("c8", "mail", "email", {})
        result = await EmailSender(hooks_client).send(channel, _down())
        assert result.error == "No email recipient configured"

    async def test_email_sent_through_provider(self, hooks_client, monkeypatch):
        monkeypatch.setattr(settings, "pulse_resend_api_key", "re_test_key")
        monkeypatch.setattr(settings, "pulse_resend_api_url", "http://hooks/resend/emails")
        channel = parse_channel("c9", "mail", "email", {"to": ["ops@example.com", "dev@example.com"]})
        result = await EmailSender(hooks_client).send(channel, _down())
        assert result.success is True
        message = received[0]["json"]
        assert message["to"] == ["ops@example.com", "dev@example.com"]
        assert message["from"] == settings.pulse_email_from
        assert message["subject"] == "🔴 Service Down: Checkout API"

    async def test_email_provider_rejection(self, hooks_client, monkeypatch):
        monkeypatch.setattr(settings, "pulse_resend_api_key", "re_wrong")
        monkeypatch.setattr(settings, "pulse_resend_api_url", "http://hooks/resend/emails")
        channel = parse_channel("c10", "mail", "email", {"to": "ops@example.com"})
        result = await EmailSender(hooks_client).send(channel, _down())
        assert result.success is False
        assert "API key is invalid" in result.error
