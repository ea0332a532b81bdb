from __future__ import annotations

import json

import httpx
import pytest

from courierdesk.core.errors import FetchFailure, TransitionFailure
from courierdesk.core.metrics import METRICS
from courierdesk.services.backend import OrdersBackend


def _backend(settings, handler) -> OrdersBackend:
    client = httpx.AsyncClient(base_url=settings.api_base_url, transport=httpx.MockTransport(handler))
    return OrdersBackend(settings, client=client)


@pytest.mark.anyio
async def test_fetch_snapshot_parses_orders(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "orders": [
                    {"_id": "a1", "status": "Accepted", "totalAmount": 99},
                    {"_id": "a2", "status": "Delivered"},
                ],
            },
        )

    backend = _backend(settings, handler)
    orders = await backend.fetch_snapshot()
    assert [order.id for order in orders] == ["a1", "a2"]
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/admin/orders"
    assert METRICS.snapshot()["fetch_latency_ms_median"] is not None


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"success": False}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"success": False, "orders": []}),
        httpx.Response(200, json={"success": True, "orders": {"_id": "x"}}),
        httpx.Response(200, json=[{"_id": "x", "status": "Accepted"}]),
        httpx.Response(200, json={"success": True, "orders": [{"status": "Accepted"}]}),
    ],
)
async def test_fetch_snapshot_failures(settings, response) -> None:
    backend = _backend(settings, lambda request: response)
    with pytest.raises(FetchFailure):
        await backend.fetch_snapshot()


@pytest.mark.anyio
async def test_fetch_snapshot_keeps_orders_with_odd_display_fields(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "success": True,
                "orders": [
                    {"_id": "a1", "status": "Accepted"},
                    {"_id": "a2", "status": "Accepted", "user": {"phone": 9845012345}, "totalAmount": None},
                    {"_id": "a3", "status": "Accepted", "user": "6650aa01"},
                ],
            },
        )

    orders = await _backend(settings, handler).fetch_snapshot()
    assert [order.id for order in orders] == ["a1", "a2", "a3"]
    assert orders[1].customer is not None and orders[1].customer.phone == "9845012345"
    assert orders[1].total_amount == 0.0
    assert orders[2].customer is None


@pytest.mark.anyio
async def test_fetch_snapshot_transport_error(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    backend = _backend(settings, handler)
    with pytest.raises(FetchFailure, match="ConnectError"):
        await backend.fetch_snapshot()


@pytest.mark.anyio
async def test_update_status_sends_patch(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    backend = _backend(settings, handler)
    await backend.update_status("a1", "Delivered")
    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/admin/orders/a1/status"
    assert json.loads(seen[0].content) == {"status": "Delivered"}


@pytest.mark.anyio
async def test_update_status_rejected(settings) -> None:
    backend = _backend(settings, lambda request: httpx.Response(409, json={"error": "locked"}))
    with pytest.raises(TransitionFailure) as excinfo:
        await backend.update_status("a1", "Delivered")
    assert excinfo.value.status_code == 409
    assert excinfo.value.order_id == "a1"
    assert excinfo.value.user_message == "Failed to update status"


@pytest.mark.anyio
async def test_update_status_network_error(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    backend = _backend(settings, handler)
    with pytest.raises(TransitionFailure) as excinfo:
        await backend.update_status("a1", "Delivered")
    assert excinfo.value.status_code is None
    assert excinfo.value.user_message == "Network error"


@pytest.mark.anyio
async def test_owned_client_is_closed(settings) -> None:
    async with OrdersBackend(settings) as backend:
        client = backend._client
    assert client.is_closed
