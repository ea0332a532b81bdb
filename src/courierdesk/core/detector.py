"""Decide whether a freshly fetched snapshot warrants the new-order alert."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from courierdesk.settings import ActiveFilter, ChangeStrategy

from .models import Order
from .projector import select_active

NO_BASELINE: int | None = None


@dataclass(frozen=True)
class ChangeDecision:
    active_orders: list[Order]
    notify: bool
    baseline: int
    active_ids: frozenset[str]


def detect_change(
    snapshot: Sequence[Order],
    previous_count: int | None,
    *,
    active_filter: ActiveFilter = "accepted",
    strategy: ChangeStrategy = "count",
    previous_ids: frozenset[str] = frozenset(),
) -> ChangeDecision:
    """Compare ``snapshot`` against the last accepted baseline.

    With the ``count`` strategy the alert fires only when a baseline exists and
    the number of active orders strictly grew. An arrival that coincides with a
    departure nets to the same count and stays silent; the ``ids`` strategy
    fires whenever an active id was not present in the previous set instead.
    The first snapshot never fires. The returned baseline always replaces the
    previous one.
    """

    active = select_active(snapshot, active_filter)
    active_ids = frozenset(order.id for order in active)

    if previous_count is NO_BASELINE:
        notify = False
    elif strategy == "ids":
        notify = bool(active_ids - previous_ids)
    else:
        notify = len(active) > previous_count

    return ChangeDecision(
        active_orders=active,
        notify=notify,
        baseline=len(active),
        active_ids=active_ids,
    )
