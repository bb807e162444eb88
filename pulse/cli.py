import asyncio

import typer
from rich.console import Console
from rich.table import Table

console = Console()
cli_app = typer.Typer(name="pulse-admin", help="Pulse Monitor administrative CLI")


def _run_async(coro):
    """Run async code from sync CLI context."""
    return asyncio.run(coro)


async def _ensure_db():
    from pulse.core.database import init_db
    await init_db()


def _store():
    from pulse.core.database import async_session
    from pulse.services.store import SqlMonitorStore
    return SqlMonitorStore(async_session)


def _status_style(status: str) -> str:
    return {"up": "green", "down": "red", "error": "yellow"}.get(status, "white")


@cli_app.command("run-checks")
def run_checks(
    batch_size: int = typer.Option(None, "--batch-size", help="Override the configured batch size"),
):
    """Run one scheduling pass and print the summary."""
    async def _run():
        await _ensure_db()
        from pulse.core.database import close_db
        from pulse.services.alerts import AlertDispatcher
        from pulse.services.incidents import IncidentTracker
        from pulse.services.maintenance import MaintenanceGate
        from pulse.services.scheduler import CheckScheduler

        store = _store()
        gate = MaintenanceGate(store)
        dispatcher = AlertDispatcher(store, gate)
        scheduler = CheckScheduler(store, IncidentTracker(store), dispatcher, batch_size=batch_size)
        try:
            return await scheduler.run_pass()
        finally:
            await dispatcher.close()
            await close_db()

    from pulse.core.exceptions import StoreUnavailableError

    try:
        summary = _run_async(_run())
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]{summary.message}[/bold] [dim]({summary.duration_ms}ms)[/dim]\n")
    if not summary.results:
        return

    table = Table(title="Check Results")
    table.add_column("Service", style="cyan")
    table.add_column("Status")
    table.add_column("Response", justify="right")
    table.add_column("Changed")
    table.add_column("Alerts", justify="right")

    for r in summary.results:
        style = _status_style(r.status)
        table.add_row(
            r.service_name,
            f"[{style}]{r.status}[/{style}]",
            f"{r.response_time}ms",
            "yes" if r.status_changed else "",
            str(r.alerts_sent),
        )

    console.print(table)


@cli_app.command("list-due")
def list_due(
    limit: int = typer.Option(50, "--limit", help="Maximum services to show"),
):
    """List services whose next check is due."""
    async def _list():
        await _ensure_db()
        return await _store().list_due_services(limit)

    services = _run_async(_list())

    if not services:
        console.print("[dim]No services due for checking.[/dim]")
        return

    table = Table(title="Due Services")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Target")
    table.add_column("Next Check")

    for s in services:
        table.add_row(s.id, s.name, s.type, s.target or "—", s.next_check.strftime("%Y-%m-%d %H:%M:%S"))

    console.print(table)


@cli_app.command("incidents")
def incidents(
    service_id: str = typer.Option(None, "--service", help="Only incidents for this service id"),
    limit: int = typer.Option(20, "--limit", help="Maximum incidents to show"),
):
    """Show recent incidents."""
    async def _list():
        await _ensure_db()
        return await _store().list_incidents(limit=limit, service_id=service_id)

    rows = _run_async(_list())

    if not rows:
        console.print("[dim]No incidents recorded.[/dim]")
        return

    from pulse.services.alerts import format_duration

    table = Table(title="Incidents")
    table.add_column("ID", style="dim")
    table.add_column("Service")
    table.add_column("Started")
    table.add_column("Ended")
    table.add_column("Duration", justify="right")
    table.add_column("Cause")
    table.add_column("Ack")

    for i in rows:
        ended = i.ended_at.strftime("%Y-%m-%d %H:%M") if i.ended_at else "[red]open[/red]"
        duration = format_duration(i.duration_seconds) if i.duration_seconds is not None else "—"
        table.add_row(
            i.id,
            i.service_id,
            i.started_at.strftime("%Y-%m-%d %H:%M"),
            ended,
            duration,
            i.cause or "",
            "yes" if i.acknowledged else "",
        )

    console.print(table)


@cli_app.command("serve")
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (defaults to PULSE_HOST)"),
    port: int = typer.Option(None, "--port", help="Bind port (defaults to PULSE_PORT)"),
):
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from pulse.config import settings

    uvicorn.run(
        "pulse.main:app",
        host=host or settings.pulse_host,
        port=port or settings.pulse_port,
        log_level=settings.pulse_log_level,
    )


def main():
    from pulse.core.log import configure_logging

    configure_logging()
    cli_app()


if __name__ == "__main__":
    main()
