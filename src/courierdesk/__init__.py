"""courierdesk: delivery order panel with polling alerts and confirmed hand-off."""

__version__ = "0.1.0"
