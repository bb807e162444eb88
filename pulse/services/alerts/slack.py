import httpx

from pulse.schemas.channels import SlackChannel
from pulse.services.alerts.base import (
    DOWN_COLOR_HEX,
    UP_COLOR_HEX,
    AlertPayload,
    AlertSender,
    SendResult,
    display_time,
    failure_from_response,
    format_duration,
)


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_slack_message(payload: AlertPayload) -> dict:
    service = payload.service
    if payload.is_down:
        header = ":red_circle: Service DOWN"
    else:
        header = ":large_green_circle: Service RECOVERED"

    blocks: list[dict] = [
        {"type": "header", "text": {"type": "plain_text", "text": header, "emoji": True}},
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Service:*\n{service.name}"},
                {"type": "mrkdwn", "text": f"*Type:*\n{service.type.upper()}"},
                {"type": "mrkdwn", "text": f"*Status:*\n{payload.status.upper()}"},
                {"type": "mrkdwn", "text": f"*Response Time:*\n{payload.response_time_ms}ms"},
            ],
        },
    ]
    if payload.target:
        blocks.append(_section(f"*Target:* `{payload.target}`"))
    if payload.message:
        blocks.append(_section(f"*Message:* {payload.message}"))
    if payload.downtime_seconds:
        blocks.append(_section(f"*Downtime Duration:* {format_duration(payload.downtime_seconds)}"))
    blocks.append(
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"Detected at {display_time(payload.timestamp)}"}],
        }
    )

    return {
        "attachments": [
            {"color": DOWN_COLOR_HEX if payload.is_down else UP_COLOR_HEX, "blocks": blocks}
        ]
    }


class SlackSender(AlertSender):
    channel_type = "slack"

    async def send(self, channel: SlackChannel, payload: AlertPayload) -> SendResult:
        if not channel.config.webhook_url:
            return SendResult(success=False, error="No Slack webhook URL configured")
        try:
            response = await self._http.post(channel.config.webhook_url, json=build_slack_message(payload))
        except httpx.HTTPError as exc:
            return SendResult(success=False, error=str(exc) or type(exc).__name__)
        if not response.is_success:
            return failure_from_response("Slack", response)
        return SendResult(success=True)
