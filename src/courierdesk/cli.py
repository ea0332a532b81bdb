"""courierdesk command-line interface."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from courierdesk.core.errors import FetchFailure, TransitionFailure
from courierdesk.core.logging import LEVEL_ORDER, TEXT_LOG, ensure_runtime_dirs, log_event, normalise_level
from courierdesk.core.metrics import snapshot_kpis
from courierdesk.core.models import DELIVERED
from courierdesk.core.projector import OrderView, project
from courierdesk.services.backend import OrdersBackend
from courierdesk.services.notifier import build_notifier
from courierdesk.services.panel import DeliveryPanel
from courierdesk.settings import get_settings
from courierdesk.utils.logging_setup import setup_logging

from . import __version__

app = typer.Typer(name="courierdesk", help="Delivery order panel CLI.")
orders_app = typer.Typer(help="Inspect and hand off orders.")
diag_app = typer.Typer(help="Diagnostics and reporting.")
log_cli_app = typer.Typer(help="Log inspection utilities.")

app.add_typer(orders_app, name="orders")
app.add_typer(diag_app, name="diag")
app.add_typer(log_cli_app, name="log")

VIEWS = ("active", "history")


@app.callback()
def _main() -> None:
    setup_logging()
    ensure_runtime_dirs()


@app.command()
def version() -> None:
    """Print the courierdesk version."""

    typer.echo(__version__)


@app.command()
def panel() -> None:
    """Run the interactive delivery panel."""

    from courierdesk.tui.panel import main as run_panel

    run_panel()


def _table(rows: list[tuple[str, ...]], headers: tuple[str, ...]) -> list[str]:
    widths = [len(header) for header in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    lines = [" ".join(header.ljust(widths[idx]) for idx, header in enumerate(headers))]
    lines.append(" ".join("-" * width for width in widths))
    for row in rows:
        lines.append(" ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row)))
    return lines


def _order_row(order: OrderView) -> tuple[str, ...]:
    created = order.order.created_at.strftime("%H:%M:%S") if order.order.created_at else "-"
    return (
        ("* " if order.is_newest else "  ") + order.id,
        order.order.status,
        order.customer_name,
        order.customer_phone,
        f"{order.order.total_amount:g}",
        created,
        str(len(order.order.items)),
    )


async def _fetch(view: str) -> list[OrderView]:
    settings = get_settings()
    async with OrdersBackend(settings) as backend:
        snapshot = await backend.fetch_snapshot()
    return project(snapshot, view, active_filter=settings.active_filter)  # type: ignore[arg-type]


@orders_app.command("list")
def orders_list(
    view: str = typer.Option("active", "--view", help="active|history"),
    as_json: bool = typer.Option(False, "--json", help="Emit raw JSON."),
) -> None:
    """Fetch one snapshot and print it."""

    if view not in VIEWS:
        raise typer.BadParameter("view must be active or history")
    try:
        orders = asyncio.run(_fetch(view))
    except FetchFailure as exc:
        log_event("cli", "orders.list", str(exc), level="WARN")
        typer.secho(f"fetch failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1) from exc

    if as_json:
        payload = [
            {**order.order.model_dump(mode="json"), "is_newest": order.is_newest} for order in orders
        ]
        typer.echo(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
    elif not orders:
        typer.echo("No Active Orders" if view == "active" else "No delivery history yet")
    else:
        headers = ("ID", "Status", "Customer", "Phone", "Amount", "Created", "Items")
        for line in _table([_order_row(order) for order in orders], headers):
            typer.echo(line)
    log_event("cli", "orders.list", "orders listed", view=view, count=len(orders))


async def _deliver(order_id: str) -> None:
    async with OrdersBackend(get_settings()) as backend:
        await backend.update_status(order_id, DELIVERED)


@orders_app.command("deliver")
def orders_deliver(
    order_id: str = typer.Argument(..., help="Order id to mark delivered."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation step."),
) -> None:
    """Mark an order delivered after an explicit confirmation."""

    if not yes:
        typer.confirm(f"Confirm delivery of order {order_id}?", abort=True)
    try:
        asyncio.run(_deliver(order_id))
    except TransitionFailure as exc:
        log_event("cli", "orders.deliver", str(exc), level="ERROR", order_id=order_id)
        typer.secho(exc.user_message, err=True, fg=typer.colors.RED)
        raise typer.Exit(1) from exc
    log_event("cli", "orders.deliver", "order delivered", order_id=order_id)
    typer.echo(json.dumps({"order_id": order_id, "status": DELIVERED}, separators=(",", ":")))


async def _watch(cycles: int) -> None:
    settings = get_settings()
    async with OrdersBackend(settings) as backend:
        notifier = build_notifier(settings, bell=lambda: typer.echo("\a", nl=False))
        desk = DeliveryPanel(backend, notifier=notifier, settings=settings)

        def _report() -> None:
            view = desk.view()
            newest = view.active[0].id if view.active else "-"
            synced = view.last_synced_at.strftime("%H:%M:%S") if view.last_synced_at else "-"
            typer.echo(f"[{synced}] active={len(view.active)} newest={newest}")

        try:
            if cycles <= 0:
                # The scheduler issues the first poll itself.
                desk.start()
                while True:
                    await asyncio.sleep(settings.poll_interval_sec)
                    _report()
            for idx in range(cycles):
                if idx:
                    await asyncio.sleep(settings.poll_interval_sec)
                await desk.refresh()
                _report()
        finally:
            await desk.close()


@app.command()
def watch(
    cycles: int = typer.Option(0, "--cycles", help="Stop after N polls (0 polls forever)."),
) -> None:
    """Poll headlessly and sound the alert when new orders arrive."""

    try:
        asyncio.run(_watch(cycles))
    except KeyboardInterrupt:
        typer.echo("")
    log_event("cli", "watch", "watch finished", cycles=cycles)


@diag_app.command("snapshot")
def diag_snapshot() -> None:
    """Print the in-process KPI snapshot."""

    data: dict[str, Any] = snapshot_kpis()
    settings = get_settings()
    data["config"] = {
        "api_base_url": settings.api_base_url,
        "poll_interval_sec": settings.poll_interval_sec,
        "active_filter": settings.active_filter,
        "change_detection": settings.change_detection,
    }
    typer.echo(json.dumps(data, indent=2))


@log_cli_app.command("tail")
def log_tail(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines."),
    level: str = typer.Option("INFO", "--level", help="Minimum level."),
) -> None:
    """Show the most recent log lines at or above ``level``."""

    min_level = normalise_level(level)
    if not TEXT_LOG.exists():
        typer.secho("log file not found", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    def _line_level(line: str) -> str:
        for part in line.split():
            if part.startswith("level="):
                return normalise_level(part.split("=", 1)[1])
        return "INFO"

    with TEXT_LOG.open("r", encoding="utf-8") as handle:
        matched = [
            line.rstrip("\n")
            for line in handle
            if LEVEL_ORDER[_line_level(line)] >= LEVEL_ORDER[min_level]
        ]
    for entry in matched[-lines:]:
        typer.echo(entry)


if __name__ == "__main__":
    app()
