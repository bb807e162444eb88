import asyncio
import time

from pulse.core.database import Service
from pulse.services.checks.base import CheckResult, down, elapsed_ms, timeout_message, up


async def check_tcp(service: Service, timeout: float) -> CheckResult:
    """Open and immediately close a TCP connection to hostname:port."""
    if not service.hostname or not service.port:
        return down(0, "Hostname and port are required")

    start = time.perf_counter()
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(service.hostname, service.port), timeout=timeout
        )
    except asyncio.TimeoutError:
        return down(elapsed_ms(start), timeout_message(timeout))
    except OSError as exc:
        return down(elapsed_ms(start), exc.strerror or str(exc) or "Connection failed")
    except Exception as exc:
        return down(elapsed_ms(start), str(exc) or type(exc).__name__)

    response_time = elapsed_ms(start)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return up(response_time, "Connection successful")
