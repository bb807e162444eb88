import httpx

from pulse.schemas.channels import WebhookChannel
from pulse.services.alerts.base import AlertPayload, AlertSender, SendResult, isoformat


def build_webhook_body(payload: AlertPayload) -> dict:
    service = payload.service
    body = {
        "event": "service.down" if payload.is_down else "service.up",
        "service": {
            "id": service.id,
            "name": service.name,
            "type": service.type,
            "url": payload.target,
        },
        "status": payload.status,
        "message": payload.message,
        "responseTimeMs": payload.response_time_ms,
        "timestamp": payload.timestamp,
    }
    if payload.incident is not None:
        incident = payload.incident
        body["incident"] = {
            "id": incident.id,
            "startedAt": isoformat(incident.started_at),
            "endedAt": isoformat(incident.ended_at),
            "durationSeconds": incident.duration_seconds,
        }
    return body


class WebhookSender(AlertSender):
    channel_type = "webhook"

    async def send(self, channel: WebhookChannel, payload: AlertPayload) -> SendResult:
        config = channel.config
        if not config.url:
            return SendResult(success=False, error="No webhook URL configured")

        headers = {k: v for k, v in config.headers.items() if k.lower() != "content-type"}
        headers["Content-Type"] = "application/json"

        try:
            response = await self._http.request(
                config.method, config.url, json=build_webhook_body(payload), headers=headers
            )
        except httpx.HTTPError as exc:
            return SendResult(success=False, error=str(exc) or type(exc).__name__)

        if not response.is_success:
            return SendResult(
                success=False,
                error=f"Webhook returned {response.status_code}: {response.reason_phrase}",
            )
        return SendResult(success=True)
