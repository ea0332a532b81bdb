"""Rich renderables for the panel; pure functions of a ``PanelView``."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from courierdesk.core.projector import OrderView
from courierdesk.services.panel import PanelView


def _clock(value: datetime | None, fmt: str = "%H:%M:%S") -> str:
    return value.strftime(fmt) if value else "-"


def render_status(view: PanelView, kpis: dict[str, Any] | None = None) -> Text:
    if view.loading:
        return Text("Loading orders...", style="bold")
    text = Text()
    text.append(f"active={len(view.active)} ")
    text.append(f"synced={_clock(view.last_synced_at)} ")
    if kpis:
        counters = kpis.get("counters", {})
        text.append(f"alerts={counters.get('alerts_total', 0)} ")
        text.append(f"fetch_failures={counters.get('fetch_failures_total', 0)} ")
    if view.last_error:
        text.append(f"last_error={view.last_error}", style="red")
    return text


def _action_line(order: OrderView, view: PanelView) -> Text:
    if view.transitioning_id == order.id:
        return Text("[ updating... ]", style="dim")
    if view.armed_id == order.id:
        return Text("[c] CONFIRM DELIVERY   [esc] cancel", style="bold white on red")
    return Text("[m] MARK DELIVERED", style="bold green")


def render_order_card(order: OrderView, view: PanelView, *, selected: bool = False) -> Panel:
    body = Text()
    body.append(f"{order.order.status}\n", style="bold green")
    body.append(order.customer_name, style="bold")
    body.append(f"  {order.customer_phone}\n")
    body.append(f"Rs {order.order.total_amount:g}", style="bold magenta")
    body.append(f"  {_clock(order.order.created_at)}\n\n")
    for line in order.item_lines:
        body.append(f"  {line}\n")
    body.append("\n")
    if order.map_url:
        for line in order.address_lines:
            body.append(f"{line or '-'}\n", style="yellow")
        body.append(f"{order.map_url}\n", style="underline blue")
    else:
        body.append("No location available\n", style="red")
    body.append_text(_action_line(order, view))

    title = "NEW ORDER!" if order.is_newest else None
    border = "red" if order.is_newest else "white"
    if selected:
        border = "bold cyan"
    return Panel(body, title=title, title_align="right", border_style=border)


def render_orders(view: PanelView, selected: int = 0) -> RenderableType:
    if not view.active:
        return Panel(
            Text("No Active Orders\nWaiting for new orders...", justify="center"),
            border_style="dim",
        )
    return Group(
        *(render_order_card(order, view, selected=idx == selected) for idx, order in enumerate(view.active))
    )


def render_history(view: PanelView) -> RenderableType:
    if view.history_loading:
        return Text("Loading history...", justify="center")
    if not view.history:
        return Text("No delivery history yet", justify="center", style="dim")
    cards = []
    for order in view.history:
        body = Text()
        body.append(order.customer_name, style="bold")
        body.append(f"  {order.customer_phone}\n")
        body.append(f"Rs {order.order.total_amount:g}", style="bold green")
        body.append(f"  {_clock(order.order.updated_at, '%Y-%m-%d %H:%M')}\n")
        for line in order.item_lines:
            body.append(f"  {line}\n")
        body.append(order.order.status, style="green")
        cards.append(Panel(body, border_style="dim"))
    return Group(*cards)
