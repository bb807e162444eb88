import time

import httpx

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CheckResult, down, elapsed_ms, timeout_message, up


DEFAULT_EXPECTED_STATUS = [200, 201, 204]
_BODYLESS_METHODS = {"GET", "HEAD"}


async def check_http(
    service: Service,
    timeout: float,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CheckResult:
    """Request the service URL and match status code and optional keyword."""
    if not service.url:
        return down(0, "No URL specified")

    method = (service.method or "GET").upper()
    expected = service.expected_status or DEFAULT_EXPECTED_STATUS
    headers = {"User-Agent": settings.pulse_http_user_agent, **(service.headers or {})}
    content = service.body if service.body and method not in _BODYLESS_METHODS else None

    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            verify=service.verify_ssl is not False,
            transport=transport,
        ) as client:
            response = await client.request(method, service.url, headers=headers, content=content)
            body = response.text if service.keyword else ""
    except httpx.TimeoutException:
        return down(elapsed_ms(start), timeout_message(timeout))
    except httpx.HTTPError as exc:
        return down(elapsed_ms(start), str(exc) or type(exc).__name__)
    except Exception as exc:
        return down(elapsed_ms(start), str(exc) or type(exc).__name__)

    response_time = elapsed_ms(start)
    code = response.status_code

    if code not in expected:
        return down(response_time, f"Unexpected status: {code}", status_code=code)

    if service.keyword and service.keyword not in body:
        return down(response_time, f'Keyword "{service.keyword}" not found', status_code=code)

    return up(response_time, "OK", status_code=code)
