"""Ephemeral per-panel state, rebuilt every time a panel is created."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .detector import NO_BASELINE
from .models import Order


@dataclass
class PanelSession:
    active_orders: list[Order] = field(default_factory=list)
    previous_active_count: int | None = NO_BASELINE
    previous_active_ids: frozenset[str] = frozenset()
    pending_confirmation: str | None = None
    in_flight_transition_id: str | None = None
    history_orders: list[Order] = field(default_factory=list)
    history_open: bool = False
    history_loading: bool = False
    loading: bool = True
    last_synced_at: datetime | None = None
    last_error: str | None = None
    closed: bool = False

    @property
    def has_baseline(self) -> bool:
        return self.previous_active_count is not NO_BASELINE

    def active_ids(self) -> list[str]:
        return [order.id for order in self.active_orders]

    def find_active(self, order_id: str) -> Order | None:
        for order in self.active_orders:
            if order.id == order_id:
                return order
        return None

    def remove_active(self, order_id: str) -> bool:
        remaining = [order for order in self.active_orders if order.id != order_id]
        removed = len(remaining) != len(self.active_orders)
        self.active_orders = remaining
        return removed
