"""Order payload models shared by the fetcher, detector and projector."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PENDING = "Pending"
ACCEPTED = "Accepted"
PREPARING = "Preparing"
OUT_FOR_DELIVERY = "Out for Delivery"
DELIVERED = "Delivered"
CANCELLED = "Cancelled"

TERMINAL_STATUSES = frozenset({DELIVERED, CANCELLED})


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    name: str | None = None
    phone: str | None = None


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    quantity: int = Field(ge=1)


class Location(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    lat: float
    lng: float


class Order(BaseModel):
    """A delivery order as returned by ``GET /orders``.

    Wire names follow the backend (``_id``, ``user``, ``totalAmount``,
    ``createdAt``); the snake_case names are accepted as well.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    status: str
    customer: Customer | None = Field(default=None, validation_alias=AliasChoices("user", "customer"))
    items: tuple[OrderItem, ...] = ()
    total_amount: float = Field(
        default=0.0, ge=0, validation_alias=AliasChoices("totalAmount", "total_amount")
    )
    address: str = ""
    location: Location | None = None
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )
    updated_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("updatedAt", "updated_at")
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_coordinates(cls, data: Any) -> Any:
        # Older payloads carry lat/lng at the top level.
        if not isinstance(data, dict) or data.get("location") is not None:
            return data
        lat, lng = data.get("lat"), data.get("lng")
        if lat is None or lng is None:
            return data
        return {**data, "location": {"lat": lat, "lng": lng}}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("address", mode="before")
    @classmethod
    def _none_address(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def _none_items(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("customer", mode="before")
    @classmethod
    def _unpopulated_customer(cls, value: Any) -> Any:
        # An unexpanded user reference arrives as a bare id string.
        if isinstance(value, (dict, Customer)):
            return value
        return None

    @field_validator("total_amount", mode="before")
    @classmethod
    def _none_total(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
