from pulse.services.alerts.base import AlertPayload, AlertSender, DispatchResult, SendResult, format_duration
from pulse.services.alerts.dispatcher import AlertDispatcher, default_senders

__all__ = [
    "AlertDispatcher",
    "AlertPayload",
    "AlertSender",
    "DispatchResult",
    "SendResult",
    "default_senders",
    "format_duration",
]
