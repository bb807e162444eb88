from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from pulse.api.v1.router import v1_router
from pulse.config import settings
from pulse.core.database import async_session, close_db, init_db
from pulse.core.exceptions import PulseError, pulse_error_handler
from pulse.core.middleware import RequestLoggingMiddleware
from pulse.core.log import configure_logging
from pulse.services.alerts import AlertDispatcher
from pulse.services.incidents import IncidentTracker
from pulse.services.maintenance import MaintenanceGate
from pulse.services.scheduler import CheckScheduler
from pulse.services.store import SqlMonitorStore

configure_logging()

logger = structlog.get_logger()


def wire_engine(app: FastAPI, store, http_client: httpx.AsyncClient) -> None:
    """Build the engine components around a store and put them on app state."""
    gate = MaintenanceGate(store)
    tracker = IncidentTracker(store)
    dispatcher = AlertDispatcher(store, gate, http_client=http_client)
    app.state.store = store
    app.state.gate = gate
    app.state.tracker = tracker
    app.state.dispatcher = dispatcher
    app.state.scheduler = CheckScheduler(store, tracker, dispatcher, batch_size=settings.pulse_batch_size)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    await init_db()

    # Shared client for all alert channel senders
    http_client = httpx.AsyncClient(timeout=settings.pulse_alert_timeout_seconds)
    wire_engine(app, SqlMonitorStore(async_session), http_client)

    logger.info(
        "pulse_starting",
        batch_size=settings.pulse_batch_size,
        cron_secret_configured=bool(settings.pulse_cron_secret),
    )
    yield

    await http_client.aclose()
    await close_db()
    logger.info("pulse_stopping")


app = FastAPI(
    title="Pulse Monitor",
    description="Uptime checks, incidents and alerting",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(PulseError, pulse_error_handler)
app.add_middleware(RequestLoggingMiddleware)
app.include_router(v1_router)


@app.get("/")
async def root():
    return {"service": "pulse-monitor", "version": "0.1.0"}
