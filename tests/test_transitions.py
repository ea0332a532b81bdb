from __future__ import annotations

import asyncio

import pytest

from courierdesk.core.errors import TransitionFailure
from courierdesk.core.metrics import METRICS
from courierdesk.core.session import PanelSession
from courierdesk.services.transitions import TransitionController, TransitionState
from tests.fakes.fake_backend import FakeOrdersBackend, make_order


def _controller(backend: FakeOrdersBackend, failures: list[str] | None = None):
    session = PanelSession(active_orders=[make_order(2), make_order(1)])
    sink = failures if failures is not None else []
    return session, TransitionController(session, backend, on_failure=sink.append)


def test_arming_second_order_disarms_first() -> None:
    session, controller = _controller(FakeOrdersBackend())
    assert controller.arm("1") is True
    assert controller.arm("2") is True
    assert session.pending_confirmation == "2"
    assert controller.state_of("1") is TransitionState.ACTIVE
    assert controller.state_of("2") is TransitionState.ARMED

    controller.disarm()
    assert session.pending_confirmation is None


@pytest.mark.anyio
async def test_confirm_requires_arming() -> None:
    backend = FakeOrdersBackend()
    session, controller = _controller(backend)
    assert await controller.confirm("2") is False
    assert backend.updates == []


@pytest.mark.anyio
async def test_confirm_success_removes_order() -> None:
    backend = FakeOrdersBackend()
    session, controller = _controller(backend)
    controller.arm("2")

    assert await controller.confirm("2") is True

    assert backend.updates == [("2", "Delivered")]
    assert session.active_ids() == ["1"]
    assert session.pending_confirmation is None
    assert session.in_flight_transition_id is None
    assert METRICS.get_counter("transitions_ok_total") == 1


@pytest.mark.anyio
async def test_duplicate_confirm_while_in_flight_is_ignored() -> None:
    backend = FakeOrdersBackend()
    backend.update_gate = asyncio.Event()
    session, controller = _controller(backend)
    controller.arm("2")

    first = asyncio.create_task(controller.confirm("2"))
    await asyncio.sleep(0)
    assert session.in_flight_transition_id == "2"
    assert controller.state_of("2") is TransitionState.TRANSITIONING

    assert controller.arm("2") is False
    assert await controller.confirm("2") is False
    controller.arm("1")
    assert await controller.confirm("1") is False
    assert session.pending_confirmation == "1"

    backend.update_gate.set()
    assert await first is True
    assert backend.updates == [("2", "Delivered")]


@pytest.mark.anyio
async def test_failed_confirm_keeps_order_and_reports() -> None:
    backend = FakeOrdersBackend()
    backend.update_error = TransitionFailure("2", "rejected", status_code=500)
    failures: list[str] = []
    session, controller = _controller(backend, failures)
    before = list(session.active_orders)
    controller.arm("2")

    assert await controller.confirm("2") is False

    assert session.active_orders == before
    assert session.in_flight_transition_id is None
    assert session.pending_confirmation is None
    assert failures == ["Failed to update status"]
    assert METRICS.get_counter("transitions_failed_total") == 1

    # a fresh arm and confirm is required to retry
    assert await controller.confirm("2") is False
    assert len(backend.updates) == 1


@pytest.mark.anyio
async def test_network_failure_message() -> None:
    backend = FakeOrdersBackend()
    backend.update_error = TransitionFailure("1", "connect failed")
    failures: list[str] = []
    _, controller = _controller(backend, failures)
    controller.arm("1")
    await controller.confirm("1")
    assert failures == ["Network error"]


@pytest.mark.anyio
async def test_result_discarded_after_close() -> None:
    backend = FakeOrdersBackend()
    backend.update_gate = asyncio.Event()
    backend.update_error = TransitionFailure("2", "rejected", status_code=502)
    failures: list[str] = []
    session, controller = _controller(backend, failures)
    controller.arm("2")

    pending = asyncio.create_task(controller.confirm("2"))
    await asyncio.sleep(0)
    session.closed = True
    backend.update_gate.set()
    await pending

    assert failures == []
    assert session.in_flight_transition_id is None
