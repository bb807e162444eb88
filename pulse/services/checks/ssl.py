import asyncio
import math
import ssl
import time
from datetime import datetime, timezone

import structlog
from cryptography import x509
from cryptography.x509.oid import NameOID

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CertificateInfo, CheckResult, down, elapsed_ms, timeout_message, up

logger = structlog.get_logger()

DEFAULT_PORT = 443


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if attrs:
        return str(attrs[0].value)
    return name.rfc4514_string()


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def certificate_info(cert: x509.Certificate, now: datetime | None = None) -> CertificateInfo:
    """Extract display metadata from a parsed certificate."""
    now = now or datetime.now(timezone.utc)
    valid_to = cert.not_valid_after_utc
    return CertificateInfo(
        subject=_common_name(cert.subject),
        issuer=_common_name(cert.issuer),
        valid_from=_iso(cert.not_valid_before_utc),
        valid_to=_iso(valid_to),
        days_until_expiry=math.floor((valid_to - now).total_seconds() / 86400),
        serial_number=format(cert.serial_number, "X"),
    )


def evaluate_certificate(
    cert: x509.Certificate,
    warning_days: int,
    response_time: int,
    now: datetime | None = None,
) -> CheckResult:
    """Classify a certificate as up/down by its validity window."""
    now = now or datetime.now(timezone.utc)
    info = certificate_info(cert, now)

    if now < cert.not_valid_before_utc:
        return down(response_time, f"Certificate not yet valid (starts {info.valid_from})", certificate=info)
    if now > cert.not_valid_after_utc:
        return down(response_time, f"Certificate expired on {info.valid_to}", certificate=info)
    if info.days_until_expiry <= warning_days:
        return down(
            response_time,
            f"Certificate expires in {info.days_until_expiry} days (warning threshold: {warning_days} days)",
            certificate=info,
        )
    return up(response_time, f"Certificate valid for {info.days_until_expiry} days", certificate=info)


def _unverified_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


async def fetch_certificate(host: str, port: int, timeout: float) -> bytes | None:
    """Complete a TLS handshake and return the peer certificate in DER form."""
    _, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port, ssl=_unverified_context(), server_hostname=host),
        timeout=timeout,
    )
    try:
        ssl_object = writer.get_extra_info("ssl_object")
        return ssl_object.getpeercert(binary_form=True) if ssl_object else None
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (OSError, ssl.SSLError):
            pass


async def check_ssl(service: Service, timeout: float) -> CheckResult:
    """Inspect the TLS certificate served at hostname:port."""
    if not service.hostname:
        return down(0, "No hostname specified")

    port = service.port or DEFAULT_PORT
    warning_days = service.ssl_expiry_warning_days
    if warning_days is None:
        warning_days = settings.pulse_ssl_expiry_warning_days

    start = time.perf_counter()
    try:
        der = await fetch_certificate(service.hostname, port, timeout)
    except asyncio.TimeoutError:
        return down(elapsed_ms(start), timeout_message(timeout))
    except (OSError, ssl.SSLError) as exc:
        return down(elapsed_ms(start), exc.strerror or str(exc) or type(exc).__name__)
    except Exception as exc:
        return down(elapsed_ms(start), str(exc) or type(exc).__name__)

    response_time = elapsed_ms(start)
    if not der:
        return down(response_time, "No certificate found")

    try:
        cert = x509.load_der_x509_certificate(der)
    except ValueError as exc:
        logger.warning("ssl_certificate_unparseable", host=service.hostname, error=str(exc))
        return down(response_time, "No certificate found")

    return evaluate_certificate(cert, warning_days, response_time)
