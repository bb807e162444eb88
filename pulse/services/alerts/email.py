from html import escape

import httpx
import structlog

from pulse.config import settings
from pulse.schemas.channels import EmailChannel
from pulse.services.alerts.base import (
    DOWN_COLOR_HEX,
    UP_COLOR_HEX,
    AlertPayload,
    AlertSender,
    SendResult,
    display_time,
    format_duration,
)

logger = structlog.get_logger()


def build_subject(payload: AlertPayload) -> str:
    if payload.is_down:
        return f"🔴 Service Down: {payload.service.name}"
    return f"🟢 Service Recovered: {payload.service.name}"


def _row(label: str, value: str) -> str:
    return (
        '<tr><td style="padding:8px;font-weight:bold;color:#374151;">'
        f"{escape(label)}</td>"
        f'<td style="padding:8px;color:#111827;">{value}</td></tr>'
    )


def build_html(payload: AlertPayload) -> str:
    color = DOWN_COLOR_HEX if payload.is_down else UP_COLOR_HEX
    heading = "Service Down" if payload.is_down else "Service Recovered"
    status = "DOWN" if payload.is_down else "UP"

    rows = [
        _row("Service", escape(payload.service.name)),
        _row("Status", f'<span style="color:{color};font-weight:bold;">{status}</span>'),
    ]
    if payload.target:
        rows.append(_row("Target", f"<code>{escape(payload.target)}</code>"))
    rows.append(_row("Response Time", f"{payload.response_time_ms}ms"))
    if payload.message:
        rows.append(_row("Message", escape(payload.message)))
    rows.append(_row("Time", escape(display_time(payload.timestamp))))
    if payload.downtime_seconds:
        rows.append(_row("Downtime Duration", format_duration(payload.downtime_seconds)))

    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">'
        f'<div style="background:{color};color:#ffffff;padding:16px;border-radius:8px 8px 0 0;">'
        f'<h2 style="margin:0;">{heading}</h2></div>'
        '<table style="width:100%;border-collapse:collapse;background:#f9fafb;">'
        + "".join(rows)
        + "</table>"
        '<p style="color:#6b7280;font-size:12px;text-align:center;">Sent by Pulse Server Monitor</p>'
        "</div>"
    )


class EmailSender(AlertSender):
    """Sends alerts through the Resend HTTP API."""

    channel_type = "email"

    async def send(self, channel: EmailChannel, payload: AlertPayload) -> SendResult:
        if not settings.pulse_resend_api_key:
            return SendResult(success=False, error="Resend API key not configured")

        config = channel.config
        if not config.to:
            return SendResult(success=False, error="No email recipient configured")

        message = {
            "from": config.from_address or settings.pulse_email_from,
            "to": config.to,
            "subject": build_subject(payload),
            "html": build_html(payload),
        }
        try:
            response = await self._http.post(
                settings.pulse_resend_api_url,
                json=message,
                headers={"Authorization": f"Bearer {settings.pulse_resend_api_key}"},
            )
        except httpx.HTTPError as exc:
            return SendResult(success=False, error=str(exc) or type(exc).__name__)

        if not response.is_success:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            logger.warning("email_provider_rejected", status=response.status_code, detail=detail)
            return SendResult(success=False, error=f"Email provider returned {response.status_code}: {detail}")
        return SendResult(success=True)
