"""Shared result types for probe drivers."""

import time
from dataclasses import dataclass, field


@dataclass
class CertificateInfo:
    """Metadata of a peer TLS certificate."""

    subject: str
    issuer: str
    valid_from: str
    valid_to: str
    days_until_expiry: int
    serial_number: str


@dataclass
class CheckResult:
    """Normalized outcome of a single probe."""

    status: str  # "up" | "down"
    response_time_ms: int
    message: str
    status_code: int | None = None
    certificate: CertificateInfo | None = field(default=None)

    @property
    def is_up(self) -> bool:
        return self.status == "up"


def elapsed_ms(start: float) -> int:
    """Milliseconds since a time.perf_counter() reading."""
    return int((time.perf_counter() - start) * 1000)


def timeout_message(timeout: float) -> str:
    return f"Timeout after {timeout:g}s"


def up(response_time_ms: int, message: str, **kwargs) -> CheckResult:
    return CheckResult(status="up", response_time_ms=response_time_ms, message=message, **kwargs)


def down(response_time_ms: int, message: str, **kwargs) -> CheckResult:
    return CheckResult(status="down", response_time_ms=response_time_ms, message=message, **kwargs)
