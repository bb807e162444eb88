import asyncio
import time
from typing import Any, Callable

import docker
import docker.errors
import structlog

from pulse.config import settings
from pulse.core.database import Service
from pulse.services.checks.base import CheckResult, down, elapsed_ms, up

logger = structlog.get_logger()


def normalize_docker_host(host: str) -> str:
    """Docker SDK expects tcp:// for remote daemons; accept http(s):// as well."""
    if host.startswith("http://"):
        return "tcp://" + host.removeprefix("http://")
    if host.startswith("https://"):
        return "tcp://" + host.removeprefix("https://")
    return host


def _make_client(base_url: str, timeout: float) -> docker.DockerClient:
    return docker.DockerClient(base_url=base_url, timeout=max(1, int(timeout)))


def _inspect(client_factory: Callable[[str, float], Any], base_url: str, name: str, timeout: float) -> dict:
    """Fetch container state (sync, called via to_thread)."""
    client = client_factory(base_url, timeout)
    try:
        return client.api.inspect_container(name)
    finally:
        client.close()


def evaluate_state(state: dict, response_time: int) -> CheckResult:
    """Map a container's inspect State block to up/down."""
    health = (state.get("Health") or {}).get("Status")

    if not state.get("Running"):
        return down(response_time, f"Container stopped (exit code: {state.get('ExitCode', 'unknown')})")
    if health is None or health == "none":
        return up(response_time, "Container running")
    if health == "healthy":
        return up(response_time, "Container running and healthy")
    if health == "unhealthy":
        return down(response_time, "Container running but unhealthy")
    return up(response_time, f"Container running (health: {health})")


async def check_docker(
    service: Service,
    timeout: float,
    *,
    client_factory: Callable[[str, float], Any] = _make_client,
) -> CheckResult:
    """Inspect a container through the Docker API."""
    if not service.container_name:
        return down(0, "No container name specified")

    base_url = normalize_docker_host(service.docker_host or settings.pulse_docker_host)
    name = service.container_name

    start = time.perf_counter()
    try:
        info = await asyncio.wait_for(
            asyncio.to_thread(_inspect, client_factory, base_url, name, timeout),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        return down(elapsed_ms(start), "Docker API timeout")
    except docker.errors.NotFound:
        return down(elapsed_ms(start), f'Container "{name}" not found', status_code=404)
    except docker.errors.APIError as exc:
        return down(elapsed_ms(start), f"Docker API error: {exc.status_code}", status_code=exc.status_code)
    except Exception as exc:
        # Transport errors surface as requests/urllib3 exceptions or a wrapping DockerException.
        text = str(exc)
        logger.debug("docker_inspect_failed", host=base_url, container=name, error=text)
        if "timed out" in text.lower() or "timeout" in type(exc).__name__.lower():
            return down(elapsed_ms(start), "Docker API timeout")
        if "refused" in text.lower() or "connection" in type(exc).__name__.lower():
            return down(elapsed_ms(start), "Cannot connect to Docker daemon")
        return down(elapsed_ms(start), text or type(exc).__name__)

    return evaluate_state(info.get("State") or {}, elapsed_ms(start))
