"""Fan-out of status-transition alerts to every active channel linked to a service."""

import asyncio

import httpx
import structlog

from pulse.config import settings
from pulse.schemas.channels import Channel, InvalidChannel
from pulse.services.alerts.base import AlertPayload, AlertSender, DispatchResult, SendResult
from pulse.services.alerts.discord import DiscordSender
from pulse.services.alerts.email import EmailSender
from pulse.services.alerts.slack import SlackSender
from pulse.services.alerts.webhook import WebhookSender
from pulse.services.maintenance import MaintenanceGate
from pulse.services.store import MonitorStore

logger = structlog.get_logger()


def default_senders(http_client: httpx.AsyncClient) -> dict[str, AlertSender]:
    return {
        sender.channel_type: sender
        for sender in (
            WebhookSender(http_client),
            EmailSender(http_client),
            SlackSender(http_client),
            DiscordSender(http_client),
        )
    }


class AlertDispatcher:
    """Sends one alert to all channels concurrently, isolating per-channel failures."""

    def __init__(
        self,
        store: MonitorStore,
        gate: MaintenanceGate,
        senders: dict[str, AlertSender] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._store = store
        self._gate = gate
        self._owns_client = http_client is None and senders is None
        self._http = http_client
        if senders is None:
            if self._http is None:
                self._http = httpx.AsyncClient(timeout=settings.pulse_alert_timeout_seconds)
            senders = default_senders(self._http)
        self._senders = senders

    async def close(self) -> None:
        if self._owns_client and self._http is not None:
            await self._http.aclose()

    async def send_alerts(self, payload: AlertPayload) -> DispatchResult:
        service_id = payload.service.id

        if await self._gate.is_in_maintenance(service_id):
            logger.info("alerts_skipped_maintenance", service_id=service_id, status=payload.status)
            return DispatchResult(skipped_for_maintenance=True)

        try:
            channels = await self._store.list_channels_for_service(service_id)
        except Exception as exc:
            logger.exception("alert_channels_lookup_failed", service_id=service_id)
            return DispatchResult(errors=[f"Failed to load alert channels: {exc}"])

        if not channels:
            return DispatchResult()

        results = await asyncio.gather(*(self._send_one(channel, payload) for channel in channels))

        dispatch = DispatchResult()
        for channel, result in zip(channels, results):
            if result.success:
                dispatch.sent += 1
            else:
                dispatch.failed += 1
                dispatch.errors.append(f"{channel.name}: {result.error}")
                logger.warning(
                    "alert_send_failed",
                    service_id=service_id,
                    channel_id=channel.id,
                    channel_type=channel.type,
                    error=result.error,
                )

        logger.info(
            "alerts_dispatched",
            service_id=service_id,
            status=payload.status,
            sent=dispatch.sent,
            failed=dispatch.failed,
        )
        return dispatch

    async def _send_one(self, channel: Channel, payload: AlertPayload) -> SendResult:
        if isinstance(channel, InvalidChannel):
            return SendResult(success=False, error=f"Invalid {channel.type} channel config: {channel.error}")

        sender = self._senders.get(channel.type)
        if sender is None:
            return SendResult(success=False, error=f"Unknown channel type: {channel.type}")

        try:
            return await sender.send(channel, payload)
        except Exception as exc:
            logger.exception("alert_sender_raised", channel_id=channel.id, channel_type=channel.type)
            return SendResult(success=False, error=str(exc) or type(exc).__name__)
