import time

import dns.asyncresolver
import dns.exception
import dns.resolver
import structlog

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CheckResult, down, elapsed_ms, up

logger = structlog.get_logger()

RECORD_TYPES = {"A", "AAAA", "MX", "TXT", "CNAME", "NS"}


def format_record(record_type: str, rdata) -> str:
    """Render one answer record the way it is shown in check messages."""
    if record_type in ("A", "AAAA"):
        return rdata.address
    if record_type == "MX":
        return f"{rdata.preference} {rdata.exchange.to_text(omit_final_dot=True)}"
    if record_type == "TXT":
        return b"".join(rdata.strings).decode(errors="replace")
    if record_type in ("CNAME", "NS"):
        return rdata.target.to_text(omit_final_dot=True)
    return rdata.to_text()


def _make_resolver(server: str) -> dns.asyncresolver.Resolver:
    resolver = dns.asyncresolver.Resolver(configure=False)
    resolver.nameservers = [server]
    return resolver


async def check_dns(
    service: Service,
    timeout: float,
    *,
    resolver: dns.asyncresolver.Resolver | None = None,
) -> CheckResult:
    """Resolve the configured record type and optionally match an expected value."""
    if not service.hostname:
        return down(0, "No hostname specified")

    host = service.hostname
    record_type = (service.dns_record_type or "A").upper()
    if record_type not in RECORD_TYPES:
        record_type = "A"
    server = service.dns_server or settings.pulse_default_dns_server

    start = time.perf_counter()
    try:
        if resolver is None:
            resolver = _make_resolver(server)
        answer = await resolver.resolve(host, record_type, lifetime=timeout)
        records = [format_record(record_type, rdata) for rdata in answer]
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return down(elapsed_ms(start), f"No {record_type} records found for {host}")
    except dns.exception.Timeout:
        return down(elapsed_ms(start), "DNS query timed out")
    except Exception as exc:
        logger.debug("dns_query_failed", host=host, server=server, error=str(exc))
        return down(elapsed_ms(start), str(exc) or type(exc).__name__)

    response_time = elapsed_ms(start)
    if not records:
        return down(response_time, f"No {record_type} records found for {host}")

    if service.expected_value:
        wanted = service.expected_value.lower()
        if not any(wanted in record.lower() for record in records):
            return down(
                response_time,
                f'Expected "{service.expected_value}" not found in records: {", ".join(records)}',
            )

    return up(response_time, f"{record_type}: {', '.join(records)}")
