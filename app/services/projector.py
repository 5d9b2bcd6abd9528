from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from app.core.logger import logger
from app.models.booking import BookingRecord, NamedAddon, PlainAddon, coerce_addon
from app.models.dashboard import (
    BillingView, BookingView, DashboardSnapshot, Notice, ServiceView, Temporal, VehicleView,
)

DEPOSIT_SHARE = Decimal("0.20")
REMAINING_SHARE = Decimal("0.80")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class DisplayProfile:
    name: str
    locale: str
    currency_symbol: str
    date_format: str
    addon_mode: str  # "names" or "count"
    show_payment: bool
    show_breakdown: bool


FULL = DisplayProfile(
    name="full", locale="en-GB", currency_symbol="£", date_format="%d/%m/%Y",
    addon_mode="names", show_payment=True, show_breakdown=True,
)
COMPACT = DisplayProfile(
    name="compact", locale="en-US", currency_symbol="$", date_format="{month}/{day}/{year}",
    addon_mode="count", show_payment=False, show_breakdown=False,
)
PROFILES = {p.name: p for p in (FULL, COMPACT)}


def get_profile(name: Optional[str]) -> DisplayProfile:
    if not name:
        return FULL
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown dashboard variant '{name}' (expected one of {sorted(PROFILES)})")


# --- Formatting ---

def format_date(value: str, profile: DisplayProfile = FULL) -> str:
    """
    Accepts 'YYYY-MM-DD' or a full ISO timestamp. Returns input unchanged
    if it cannot be parsed.
    """
    try:
        d = date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return value
    if "{" in profile.date_format:
        return profile.date_format.format(month=d.month, day=d.day, year=d.year)
    return d.strftime(profile.date_format)

def format_time(value: str) -> str:
    """'14:05:00' -> '14:05'"""
    return value[:5]

def format_currency(amount: Union[Decimal, float, int], profile: DisplayProfile = FULL) -> str:
    amount = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{profile.currency_symbol}{abs(amount):,}"


# --- Billing ---

def compute_deposit(total: Union[Decimal, float, int]) -> Decimal:
    return Decimal(str(total)) * DEPOSIT_SHARE

def compute_remaining(total: Union[Decimal, float, int]) -> Decimal:
    return Decimal(str(total)) * REMAINING_SHARE


# --- Addons ---

def summarize_addons(addons: Optional[Sequence], mode: str = "names") -> str:
    if not addons:
        return ""
    if mode == "count":
        n = len(addons)
        return f"+{n} addon" if n == 1 else f"+{n} addons"
    labels = []
    for addon in addons:
        if not isinstance(addon, (PlainAddon, NamedAddon)):
            addon = coerce_addon(addon)
        labels.append(addon.label)
    return ", ".join(labels)


# --- Upcoming / past ---

def booking_datetime(booking_date: str, booking_time: str) -> datetime:
    """
    Naive local datetime. An offset on the time (timetz columns) is dropped,
    not applied.
    """
    slot = time.fromisoformat(booking_time).replace(tzinfo=None)
    return datetime.combine(date.fromisoformat(booking_date), slot)

def classify_temporal(booking_date: str, booking_time: str, now: datetime) -> Temporal:
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    try:
        when = booking_datetime(booking_date, booking_time)
    except (TypeError, ValueError):
        logger.warning("⚠️ Unparseable booking slot '{} {}', treating as past", booking_date, booking_time)
        return Temporal.PAST
    return Temporal.UPCOMING if when > now else Temporal.PAST

def partition(records: Iterable[BookingRecord], now: Optional[datetime] = None) -> Tuple[List[BookingRecord], List[BookingRecord]]:
    """
    Splits records into (upcoming, past) against a single `now`.
    Input order is kept in both lists.
    """
    now = now or datetime.now()
    upcoming, past = [], []
    for record in records:
        if classify_temporal(record.booking_date, record.booking_time, now) is Temporal.UPCOMING:
            upcoming.append(record)
        else:
            past.append(record)
    return upcoming, past


# --- Rows ---

def project(record: BookingRecord, profile: DisplayProfile = FULL, now: Optional[datetime] = None) -> BookingView:
    now = now or datetime.now()
    money = lambda amount: format_currency(amount, profile)

    make_model = " ".join(p for p in (record.vehicle_make, record.vehicle_model) if p)
    type_category = None
    if record.vehicle_type:
        type_category = f"{record.vehicle_type} - {record.vehicle_category or ''}".rstrip(" -")

    if profile.show_breakdown:
        billing = BillingView(
            total=money(record.total_price),
            deposit=money(compute_deposit(record.total_price)),
            remaining=money(compute_remaining(record.total_price)),
        )
    else:
        billing = BillingView(total=money(record.total_price))

    payment_status = None
    if profile.show_payment:
        payment_status = "Confirmed" if record.payment_confirmed else "Pending"

    return BookingView(
        id=record.id,
        customer_name=record.customer_name,
        customer_email=record.customer_email,
        contact=record.customer_phone,
        vehicle=VehicleView(
            registration=record.registration,
            make_model=make_model,
            type_category=type_category,
        ),
        service=ServiceView(
            name=record.service_name,
            price=money(record.service_price),
            addons=summarize_addons(record.selected_addons, profile.addon_mode),
        ),
        date=format_date(record.booking_date, profile),
        time=format_time(record.booking_time),
        payment_status=payment_status,
        billing=billing,
        created=format_date(record.created_at, profile),
        loyalty_reward=record.is_loyalty_reward,
        status=classify_temporal(record.booking_date, record.booking_time, now),
    )

def build_dashboard(records: Sequence[BookingRecord], profile: DisplayProfile = FULL,
                    now: Optional[datetime] = None, loading: bool = False,
                    notices: Iterable[Notice] = ()) -> DashboardSnapshot:
    now = now or datetime.now()
    upcoming, past = partition(records, now)
    return DashboardSnapshot(
        variant=profile.name,
        loading=loading,
        total=len(records),
        upcoming_count=len(upcoming),
        past_count=len(past),
        upcoming=[project(r, profile, now) for r in upcoming],
        past=[project(r, profile, now) for r in past],
        notices=list(notices),
    )
