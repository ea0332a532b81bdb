"""Two-step (arm, then confirm) hand-off of an order to ``Delivered``."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import Protocol

from courierdesk.core.errors import TransitionFailure
from courierdesk.core.logging import log_event
from courierdesk.core.metrics import METRICS
from courierdesk.core.models import DELIVERED
from courierdesk.core.session import PanelSession

log = logging.getLogger("courierdesk.transitions")


class StatusUpdater(Protocol):
    async def update_status(self, order_id: str, status: str) -> None: ...


class TransitionState(enum.Enum):
    ACTIVE = "active"
    ARMED = "armed"
    TRANSITIONING = "transitioning"


def _log_failure(message: str) -> None:
    log.error("Delivery update failed: %s", message)


class TransitionController:
    """Drive the delivery confirmation workflow against a panel session.

    Only one order is armed at a time and only one status update is in flight
    at a time. A failed update leaves the order in place, clears the in-flight
    marker and reports ``TransitionFailure.user_message`` through
    ``on_failure``; retrying takes a fresh arm and confirm.
    """

    def __init__(
        self,
        session: PanelSession,
        backend: StatusUpdater,
        *,
        on_failure: Callable[[str], None] | None = None,
        on_change: Callable[[], None] | None = None,
        target_status: str = DELIVERED,
    ) -> None:
        self.session = session
        self.backend = backend
        self.target_status = target_status
        self._on_failure = on_failure or _log_failure
        self._on_change = on_change or (lambda: None)

    def state_of(self, order_id: str) -> TransitionState:
        if self.session.in_flight_transition_id == order_id:
            return TransitionState.TRANSITIONING
        if self.session.pending_confirmation == order_id:
            return TransitionState.ARMED
        return TransitionState.ACTIVE

    def arm(self, order_id: str) -> bool:
        """Arm ``order_id`` for confirmation, disarming any other order."""

        if self.session.in_flight_transition_id == order_id:
            log.debug("Ignoring arm for %s: update in flight", order_id)
            return False
        self.session.pending_confirmation = order_id
        self._on_change()
        return True

    def disarm(self) -> None:
        if self.session.pending_confirmation is None:
            return
        self.session.pending_confirmation = None
        self._on_change()

    async def confirm(self, order_id: str) -> bool:
        """Send the status update for the armed order.

        Returns True when the backend accepted the update, False when the
        request was ignored or failed.
        """

        session = self.session
        if session.in_flight_transition_id is not None:
            log.debug(
                "Ignoring confirm for %s: %s already in flight",
                order_id,
                session.in_flight_transition_id,
            )
            return False
        if session.pending_confirmation != order_id:
            log.debug("Ignoring confirm for %s: not armed", order_id)
            return False

        session.pending_confirmation = None
        session.in_flight_transition_id = order_id
        self._on_change()
        log_event(
            "panel",
            "transition.start",
            "status update sent",
            order_id=order_id,
            target=self.target_status,
        )

        try:
            await self.backend.update_status(order_id, self.target_status)
        except TransitionFailure as exc:
            METRICS.increment_counter("transitions_failed_total")
            log_event(
                "panel",
                "transition.fail",
                str(exc),
                level="ERROR",
                order_id=order_id,
                status_code=exc.status_code,
            )
            if session.in_flight_transition_id == order_id:
                session.in_flight_transition_id = None
            if not session.closed:
                self._on_failure(exc.user_message)
                self._on_change()
            return False

        METRICS.increment_counter("transitions_ok_total")
        if session.in_flight_transition_id == order_id:
            session.in_flight_transition_id = None
        if session.closed:
            return True
        session.remove_active(order_id)
        log_event("panel", "transition.ok", "order delivered", order_id=order_id)
        self._on_change()
        return True
