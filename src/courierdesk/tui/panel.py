"""Textual-based delivery panel."""

from __future__ import annotations

from typing import ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Static

from courierdesk.core.logging import ensure_runtime_dirs, log_event
from courierdesk.core.metrics import snapshot_kpis
from courierdesk.services.backend import OrdersBackend
from courierdesk.services.notifier import Notifier, build_notifier
from courierdesk.services.panel import DeliveryPanel, OrdersSource
from courierdesk.settings import AppSettings, get_settings
from courierdesk.tui.render import render_history, render_orders, render_status


class PanelApp(App[None]):
    """Delivery panel: polls orders, rings on arrivals, confirms hand-offs."""

    CSS = (
        "#status { padding: 0 2; height: 1; } "
        "#orders { height: 1fr; padding: 1 2; } "
        "#history { height: 1fr; padding: 1 2; border: round $accent; }"
    )

    BINDINGS: ClassVar[list[Binding | tuple[str, str] | tuple[str, str, str]]] = [
        Binding("up,k", "select(-1)", "Up", show=False, priority=True),
        Binding("down,j", "select(1)", "Down", show=False, priority=True),
        Binding("m", "arm", "Mark delivered"),
        Binding("c", "confirm", "Confirm"),
        Binding("escape", "cancel", "Cancel"),
        Binding("h", "history", "History"),
        Binding("r", "refresh", "Refresh"),
        Binding("ctrl+q", "request_quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        *,
        settings: AppSettings | None = None,
        backend: OrdersSource | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        super().__init__()
        ensure_runtime_dirs()
        self._settings = settings or get_settings()
        self._owned_backend: OrdersBackend | None = None
        if backend is None:
            self._owned_backend = OrdersBackend(self._settings)
            backend = self._owned_backend
        self.panel = DeliveryPanel(
            backend,
            notifier=notifier or build_notifier(self._settings, bell=self.bell),
            settings=self._settings,
            on_change=self.refresh_view,
            on_failure=self._show_failure,
        )
        self.title = self._settings.app_brand
        self._selected = 0
        self._status: Static | None = None
        self._orders: Static | None = None
        self._history: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        self._status = Static("", id="status")
        yield self._status
        with VerticalScroll():
            self._orders = Static("", id="orders")
            yield self._orders
        self._history = Static("", id="history")
        self._history.display = False
        yield self._history
        yield Footer()

    async def on_mount(self) -> None:
        log_event("tui", "startup", "delivery panel mounted")
        self.refresh_view()
        self.panel.start()

    async def on_unmount(self) -> None:
        await self.panel.close()
        if self._owned_backend is not None:
            await self._owned_backend.aclose()

    def selected_id(self) -> str | None:
        active = self.panel.session.active_orders
        if not active:
            return None
        return active[min(self._selected, len(active) - 1)].id

    def refresh_view(self) -> None:
        view = self.panel.view()
        self._selected = max(0, min(self._selected, len(view.active) - 1))
        if self._status is not None:
            self._status.update(render_status(view, snapshot_kpis()))
        if self._orders is not None:
            self._orders.update(render_orders(view, self._selected))
        if self._history is not None:
            self._history.display = view.history_open
            if view.history_open:
                self._history.update(render_history(view))

    def _show_failure(self, message: str) -> None:
        self.notify(message, title="Delivery update", severity="error")

    def action_select(self, step: int) -> None:
        self._selected += step
        self.refresh_view()

    def action_arm(self) -> None:
        order_id = self.selected_id()
        if order_id is not None:
            self.panel.arm(order_id)

    def action_confirm(self) -> None:
        order_id = self.selected_id()
        if order_id is None or self.panel.session.pending_confirmation != order_id:
            return
        self.run_worker(self.panel.confirm(order_id), group="transition")

    def action_cancel(self) -> None:
        if self.panel.session.history_open:
            self.panel.close_history()
        else:
            self.panel.disarm()

    def action_history(self) -> None:
        if self.panel.session.history_open:
            self.panel.close_history()
            return
        self.run_worker(self.panel.open_history(), group="history")

    def action_refresh(self) -> None:
        self.run_worker(self.panel.refresh(), group="refresh")

    def action_request_quit(self) -> None:
        log_event("tui", "shutdown", "quit requested")
        self.exit()


def main() -> None:
    """Entrypoint used by the CLI and service wrappers."""

    PanelApp().run()


if __name__ == "__main__":
    main()
