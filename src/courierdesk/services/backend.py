"""HTTP client for the order backend."""

from __future__ import annotations

import logging
import time
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from courierdesk.core.errors import FetchFailure, TransitionFailure
from courierdesk.core.metrics import METRICS
from courierdesk.core.models import Order
from courierdesk.settings import AppSettings, get_settings

log = logging.getLogger("courierdesk.backend")


class OrdersBackend:
    """Fetch order snapshots and push status updates.

    Pass ``client`` to reuse an existing ``httpx.AsyncClient`` (tests hand in
    one wired to ``httpx.MockTransport``); otherwise one is created from
    settings and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.request_timeout_sec,
        )
        self._orders_path = "/" + self._settings.orders_path.strip("/")

    async def __aenter__(self) -> OrdersBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def status_path(self, order_id: str) -> str:
        return f"{self._orders_path}/{order_id}/status"

    async def fetch_snapshot(self) -> list[Order]:
        """Return every order the backend currently knows about."""

        start = time.monotonic()
        try:
            response = await self._client.get(self._orders_path)
        except httpx.HTTPError as exc:
            raise FetchFailure(f"request failed: {exc.__class__.__name__}: {exc}") from exc
        finally:
            METRICS.update_fetch_latency((time.monotonic() - start) * 1000.0)

        if not response.is_success:
            raise FetchFailure(f"unexpected status {response.status_code}")
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise FetchFailure("response body is not JSON") from exc

        if not isinstance(payload, dict) or payload.get("success") is not True:
            raise FetchFailure("backend reported failure")
        raw_orders = payload.get("orders")
        if not isinstance(raw_orders, list):
            raise FetchFailure("orders field missing or not a list")

        try:
            orders = [Order.model_validate(raw) for raw in raw_orders]
        except ValidationError as exc:
            raise FetchFailure(f"malformed order payload: {exc.error_count()} error(s)") from exc
        log.debug("Fetched %d orders in %.0fms", len(orders), (time.monotonic() - start) * 1000.0)
        return orders

    async def update_status(self, order_id: str, status: str) -> None:
        """PATCH the order status; only the response code is consumed."""

        try:
            response = await self._client.patch(self.status_path(order_id), json={"status": status})
        except httpx.HTTPError as exc:
            raise TransitionFailure(order_id, f"request failed: {exc}") from exc
        if not response.is_success:
            raise TransitionFailure(
                order_id,
                f"status update rejected with {response.status_code}",
                status_code=response.status_code,
            )
        log.info("Order %s moved to %s", order_id, status)
