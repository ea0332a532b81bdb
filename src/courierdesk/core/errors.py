"""Error taxonomy for the delivery panel."""

from __future__ import annotations


class CourierDeskError(Exception):
    """Base class for panel errors."""


class FetchFailure(CourierDeskError):
    """Snapshot retrieval failed (transport, status, or payload)."""


class TransitionFailure(CourierDeskError):
    """A status update was rejected or could not be delivered."""

    def __init__(self, order_id: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        if self.status_code is None:
            return "Network error"
        return "Failed to update status"


class NotificationPlaybackFailure(CourierDeskError):
    """The audio cue could not be played. Never surfaced to the operator."""
