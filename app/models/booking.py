import json
from decimal import Decimal
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Addons ---
# selected_addons is free-form JSON in the table. Each entry is either a bare
# value or an object carrying a "name"; anything else is coerced to a string.

class PlainAddon(BaseModel):
    kind: Literal["plain"] = "plain"
    value: str

    @property
    def label(self) -> str:
        return self.value

class NamedAddon(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["named"] = "named"
    name: str

    @property
    def label(self) -> str:
        return self.name

Addon = Union[PlainAddon, NamedAddon]

def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    # JSON rendering keeps true/false/null and plain numbers readable
    return json.dumps(value, default=str)

def coerce_addon(raw: Any) -> Union[PlainAddon, NamedAddon]:
    """
    Turns one raw selected_addons entry into an Addon. Never raises.
    """
    if isinstance(raw, (PlainAddon, NamedAddon)):
        return raw
    if isinstance(raw, dict) and "name" in raw:
        extra = {k: v for k, v in raw.items() if k not in ("name", "kind")}
        name = raw["name"]
        return NamedAddon(name="" if name is None else _as_text(name), **extra)
    return PlainAddon(value=_as_text(raw))


class BookingRecord(BaseModel):
    """
    One row of the bookings table, as returned by `select("*")`.
    deposit_amount / remaining_amount are legacy columns kept for display only.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str

    # Customer
    customer_name: str
    customer_email: str
    customer_phone: str

    # Vehicle
    registration: str
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_category: Optional[str] = None

    # Service
    service_name: str
    service_price: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)
    selected_addons: Optional[List[Addon]] = None

    # Scheduling
    booking_date: str
    booking_time: str

    # Payment
    payment_confirmed: Optional[bool] = None
    deposit_amount: Optional[Decimal] = None
    remaining_amount: Optional[Decimal] = None
    is_loyalty_reward: bool = False
    refund: Optional[bool] = None

    user_id: Optional[str] = None

    # Audit
    created_at: str
    updated_at: str

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        # uuid columns come back as strings, but tests and fixtures may pass ints
        return v if v is None else str(v)

    @field_validator("selected_addons", mode="before")
    @classmethod
    def _coerce_addons(cls, v):
        if not isinstance(v, list):
            return None
        return [coerce_addon(item) for item in v]
