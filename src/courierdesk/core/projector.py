"""Pure projection of a raw snapshot into display-ready order views."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from courierdesk.settings import ActiveFilter

from .models import ACCEPTED, DELIVERED, TERMINAL_STATUSES, Order

View = Literal["active", "history"]

MAPS_URL = "https://www.google.com/maps?q={lat},{lng}"


@dataclass(frozen=True)
class OrderView:
    """One order as handed to the rendering collaborator."""

    order: Order
    is_newest: bool = False

    @property
    def id(self) -> str:
        return self.order.id

    @property
    def customer_name(self) -> str:
        customer = self.order.customer
        return (customer.name if customer else None) or "Customer"

    @property
    def customer_phone(self) -> str:
        customer = self.order.customer
        return (customer.phone if customer else None) or "No phone"

    @property
    def address_lines(self) -> list[str]:
        return self.order.address.split("\n")

    @property
    def item_lines(self) -> list[str]:
        return [f"{item.name} x {item.quantity}" for item in self.order.items]

    @property
    def map_url(self) -> str | None:
        location = self.order.location
        if location is None:
            return None
        return MAPS_URL.format(lat=location.lat, lng=location.lng)


def is_active(order: Order, active_filter: ActiveFilter) -> bool:
    if active_filter == "accepted":
        return order.status == ACCEPTED
    return order.status not in TERMINAL_STATUSES


def select_active(orders: Iterable[Order], active_filter: ActiveFilter) -> list[Order]:
    """Active orders, newest first (the backend lists oldest first)."""

    return [order for order in orders if is_active(order, active_filter)][::-1]


def select_history(orders: Iterable[Order]) -> list[Order]:
    """Delivered orders, newest first."""

    return [order for order in orders if order.status == DELIVERED][::-1]


def views_for(orders: Iterable[Order], *, flag_newest: bool) -> list[OrderView]:
    return [OrderView(order, is_newest=flag_newest and idx == 0) for idx, order in enumerate(orders)]


def project(
    orders: Iterable[Order],
    view: View = "active",
    *,
    active_filter: ActiveFilter = "accepted",
) -> list[OrderView]:
    """Filter and order a raw snapshot for ``view``.

    The first element of the ``active`` projection is flagged as newest.
    """

    if view == "active":
        return views_for(select_active(orders, active_filter), flag_newest=True)
    if view == "history":
        return views_for(select_history(orders), flag_newest=False)
    raise ValueError(f"unknown view: {view}")
