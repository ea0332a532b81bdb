"""Backend client, notifier, scheduler and panel orchestration."""

from .backend import OrdersBackend
from .panel import DeliveryPanel, PanelView

__all__ = ["DeliveryPanel", "OrdersBackend", "PanelView"]
