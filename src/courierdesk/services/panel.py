"""Delivery panel: owns the session and wires fetcher, detector and controller."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from courierdesk.core.detector import detect_change
from courierdesk.core.errors import FetchFailure
from courierdesk.core.logging import log_event
from courierdesk.core.metrics import METRICS
from courierdesk.core.models import Order
from courierdesk.core.projector import OrderView, select_history, views_for
from courierdesk.core.session import PanelSession
from courierdesk.services.notifier import Notifier, NullNotifier
from courierdesk.services.poller import PollScheduler
from courierdesk.services.transitions import StatusUpdater, TransitionController, TransitionState
from courierdesk.settings import AppSettings, get_settings

log = logging.getLogger("courierdesk.panel")


class OrdersSource(StatusUpdater, Protocol):
    async def fetch_snapshot(self) -> list[Order]: ...


@dataclass(frozen=True)
class PanelView:
    """Everything the rendering collaborator needs for one frame."""

    active: list[OrderView]
    armed_id: str | None
    transitioning_id: str | None
    history: list[OrderView]
    history_open: bool
    history_loading: bool
    loading: bool
    last_synced_at: datetime | None
    last_error: str | None


class DeliveryPanel:
    """One operator panel instance.

    ``on_change`` is called after every state mutation so a renderer can
    redraw; ``on_failure`` receives user-facing transition failure messages.
    """

    def __init__(
        self,
        backend: OrdersSource,
        *,
        notifier: Notifier | None = None,
        settings: AppSettings | None = None,
        on_change: Callable[[], None] | None = None,
        on_failure: Callable[[str], None] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.backend = backend
        self.notifier = notifier or NullNotifier()
        self.session = PanelSession()
        self._on_change = on_change or (lambda: None)
        self.transitions = TransitionController(
            self.session,
            backend,
            on_failure=on_failure,
            on_change=self._changed,
        )
        self.scheduler = PollScheduler(self.reconcile, self.settings.poll_interval_sec)

    def _changed(self) -> None:
        if not self.session.closed:
            self._on_change()

    # -------------------- lifecycle --------------------

    def start(self) -> None:
        log_event("panel", "startup", "panel polling started", interval=self.settings.poll_interval_sec)
        self.scheduler.start()

    async def close(self) -> None:
        """Stop polling; a fetch still in flight completes and its result is discarded."""

        self.session.closed = True
        await self.scheduler.stop()
        log_event("panel", "shutdown", "panel closed")

    async def refresh(self) -> None:
        await self.scheduler.run_once()

    # -------------------- reconciliation --------------------

    async def reconcile(self) -> bool:
        """Run one fetch, detect, notify, apply cycle.

        Returns False when the fetch failed or the panel was closed meanwhile;
        session state is left as it was in both cases.
        """

        session = self.session
        try:
            snapshot = await self.backend.fetch_snapshot()
        except FetchFailure as exc:
            METRICS.increment_counter("fetch_failures_total")
            log_event("panel", "poll.fail", str(exc), level="WARN")
            if not session.closed:
                session.last_error = str(exc)
                session.loading = False
                self._changed()
            return False
        if session.closed:
            return False

        decision = detect_change(
            snapshot,
            session.previous_active_count,
            active_filter=self.settings.active_filter,
            strategy=self.settings.change_detection,
            previous_ids=session.previous_active_ids,
        )
        if decision.notify:
            log_event(
                "panel",
                "poll.alert",
                "new order arrived",
                previous=session.previous_active_count,
                current=decision.baseline,
            )
            self.notifier.notify()

        session.active_orders = decision.active_orders
        session.previous_active_count = decision.baseline
        session.previous_active_ids = decision.active_ids
        if session.pending_confirmation not in decision.active_ids:
            session.pending_confirmation = None
        session.loading = False
        session.last_error = None
        session.last_synced_at = datetime.now()
        METRICS.record_poll(decision.baseline)
        self._changed()
        return True

    # -------------------- history --------------------

    async def open_history(self) -> None:
        session = self.session
        session.history_open = True
        session.history_loading = True
        self._changed()
        try:
            snapshot = await self.backend.fetch_snapshot()
        except FetchFailure as exc:
            METRICS.increment_counter("fetch_failures_total")
            log_event("panel", "history.fail", str(exc), level="WARN")
        else:
            session.history_orders = select_history(snapshot)
        finally:
            session.history_loading = False
        self._changed()

    def close_history(self) -> None:
        self.session.history_open = False
        self._changed()

    # -------------------- operator intents --------------------

    def arm(self, order_id: str) -> bool:
        return self.transitions.arm(order_id)

    def disarm(self) -> None:
        self.transitions.disarm()

    async def confirm(self, order_id: str) -> bool:
        return await self.transitions.confirm(order_id)

    def state_of(self, order_id: str) -> TransitionState:
        return self.transitions.state_of(order_id)

    def view(self) -> PanelView:
        session = self.session
        return PanelView(
            active=views_for(session.active_orders, flag_newest=True),
            armed_id=session.pending_confirmation,
            transitioning_id=session.in_flight_transition_id,
            history=views_for(session.history_orders, flag_newest=False),
            history_open=session.history_open,
            history_loading=session.history_loading,
            loading=session.loading,
            last_synced_at=session.last_synced_at,
            last_error=session.last_error,
        )
