import httpx

from pulse.schemas.channels import DiscordChannel
from pulse.services.alerts.base import (
    AlertPayload,
    AlertSender,
    SendResult,
    failure_from_response,
    format_duration,
)

DOWN_COLOR = 15548997
UP_COLOR = 1100289


def build_discord_embed(payload: AlertPayload) -> dict:
    service = payload.service
    fields = [
        {"name": "📊 Service", "value": service.name, "inline": True},
        {"name": "🔧 Type", "value": service.type.upper(), "inline": True},
        {"name": "📡 Status", "value": payload.status.upper(), "inline": True},
        {"name": "⏱️ Response Time", "value": f"{payload.response_time_ms}ms", "inline": True},
    ]
    if payload.target:
        fields.append({"name": "🎯 Target", "value": f"`{payload.target}`", "inline": False})
    if payload.message:
        fields.append({"name": "💬 Message", "value": payload.message, "inline": False})
    if payload.downtime_seconds:
        fields.append(
            {
                "name": "⏰ Downtime Duration",
                "value": format_duration(payload.downtime_seconds),
                "inline": False,
            }
        )

    return {
        "title": "🔴 Service DOWN" if payload.is_down else "🟢 Service RECOVERED",
        "color": DOWN_COLOR if payload.is_down else UP_COLOR,
        "fields": fields,
        "footer": {"text": "Pulse Monitor"},
        "timestamp": payload.timestamp,
    }


class DiscordSender(AlertSender):
    channel_type = "discord"

    async def send(self, channel: DiscordChannel, payload: AlertPayload) -> SendResult:
        if not channel.config.webhook_url:
            return SendResult(success=False, error="No Discord webhook URL configured")
        try:
            response = await self._http.post(
                channel.config.webhook_url, json={"embeds": [build_discord_embed(payload)]}
            )
        except httpx.HTTPError as exc:
            return SendResult(success=False, error=str(exc) or type(exc).__name__)
        if not response.is_success:
            return failure_from_response("Discord", response)
        return SendResult(success=True)
