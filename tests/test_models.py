from __future__ import annotations

import pytest
from pydantic import ValidationError

from courierdesk.core.models import Order


def test_order_parses_backend_payload() -> None:
    order = Order.model_validate(
        {
            "_id": "665f",
            "status": "Accepted",
            "user": {"name": "Asha", "phone": "98450"},
            "items": [{"name": "Dosa", "quantity": 2}],
            "totalAmount": 180,
            "address": "12 MG Road\nBengaluru",
            "lat": 12.97,
            "lng": 77.59,
            "createdAt": "2024-05-01T10:15:00Z",
            "updatedAt": "2024-05-01T10:20:00Z",
            "paymentMode": "COD",
        }
    )
    assert order.id == "665f"
    assert order.customer is not None and order.customer.phone == "98450"
    assert order.items[0].quantity == 2
    assert order.total_amount == 180
    assert order.location is not None
    assert (order.location.lat, order.location.lng) == (12.97, 77.59)
    assert order.created_at is not None and order.created_at.hour == 10
    assert not order.is_terminal


def test_order_tolerates_missing_optional_fields() -> None:
    order = Order.model_validate({"id": 7, "status": "Delivered", "address": None, "items": None})
    assert order.id == "7"
    assert order.customer is None
    assert order.items == ()
    assert order.address == ""
    assert order.location is None
    assert order.is_terminal


def test_half_coordinates_mean_no_location() -> None:
    order = Order.model_validate({"_id": "1", "status": "Accepted", "lat": 12.9})
    assert order.location is None


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "Accepted"},
        {"_id": "1", "status": "Accepted", "items": [{"name": "Tea", "quantity": 0}]},
        {"_id": "1", "status": "Accepted", "totalAmount": -5},
    ],
)
def test_order_rejects_invalid_payloads(payload) -> None:
    with pytest.raises(ValidationError):
        Order.model_validate(payload)


@pytest.mark.parametrize(
    ("payload", "phone", "has_customer", "total"),
    [
        ({"user": {"name": "Ravi", "phone": 9845012345}}, "9845012345", True, 0.0),
        ({"user": "6650aa01"}, None, False, 0.0),
        ({"user": None, "totalAmount": None}, None, False, 0.0),
        ({"user": {"name": "Ravi"}, "totalAmount": "120.5"}, None, True, 120.5),
    ],
)
def test_display_fields_are_lenient(payload, phone, has_customer, total) -> None:
    order = Order.model_validate({"_id": "1", "status": "Accepted", **payload})
    assert (order.customer is not None) is has_customer
    if order.customer is not None:
        assert order.customer.phone == phone
    assert order.total_amount == total
