import asyncio
import math
import re
import time

import structlog

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CheckResult, down, elapsed_ms, timeout_message, up

logger = structlog.get_logger()

_RTT_RE = re.compile(r"time[=<]([\d.]+)\s*ms")


def parse_rtt(output: str) -> int | None:
    """Round-trip time in ms from ping output, if present."""
    match = _RTT_RE.search(output)
    if match is None:
        return None
    return round(float(match.group(1)))


async def check_ping(service: Service, timeout: float) -> CheckResult:
    """Send one ICMP echo through the system ping binary."""
    if not service.hostname:
        return down(0, "No hostname specified")
    if service.hostname.startswith("-"):
        return down(0, f"Invalid hostname: {service.hostname}")

    wait = str(max(1, math.ceil(timeout)))
    start = time.perf_counter()
    try:
        proc = await asyncio.create_subprocess_exec(
            settings.pulse_ping_command,
            "-c",
            "1",
            "-W",
            wait,
            service.hostname,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        logger.warning("ping_binary_missing", command=settings.pulse_ping_command)
        return down(elapsed_ms(start), f"{settings.pulse_ping_command} command not available")
    except OSError as exc:
        return down(elapsed_ms(start), exc.strerror or str(exc))

    try:
        # -W bounds the wait for a reply; the extra second covers DNS lookup.
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout + 1)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return down(elapsed_ms(start), timeout_message(timeout))

    wall = elapsed_ms(start)
    output = stdout.decode(errors="replace")

    if proc.returncode == 0:
        rtt = parse_rtt(output)
        return up(rtt if rtt is not None else wall, "Host is reachable")

    detail = (stderr.decode(errors="replace") or output).strip()
    return down(wall, detail or "Host unreachable")
