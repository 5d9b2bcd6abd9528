import asyncio
import itertools
from unittest.mock import AsyncMock, MagicMock

from app.models.booking import BookingRecord
from app.services.db_service import ChangeEvent, ChangeSubscription

_ids = itertools.count(1)

def make_row(**overrides) -> dict:
    """Raw row shaped like `select("*")` output from the bookings table."""
    row = {
        "id": f"bk-{next(_ids)}",
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
        "customer_phone": "07700 900123",
        "registration": "AB12 CDE",
        "vehicle_make": "Ford",
        "vehicle_model": "Focus",
        "vehicle_type": "Hatchback",
        "vehicle_category": "Medium",
        "service_name": "Full Valet",
        "service_price": 80,
        "total_price": 100,
        "selected_addons": [{"name": "Wax", "price": 10}, "Polish"],
        "booking_date": "2026-10-20",
        "booking_time": "14:05:00",
        "payment_confirmed": True,
        "deposit_amount": 999,
        "remaining_amount": 999,
        "is_loyalty_reward": False,
        "refund": None,
        "user_id": None,
        "created_at": "2026-10-01T09:30:00+00:00",
        "updated_at": "2026-10-01T09:30:00+00:00",
    }
    row.update(overrides)
    return row

def make_booking(**overrides) -> BookingRecord:
    return BookingRecord.model_validate(make_row(**overrides))


class FakeBackend:
    """
    In-memory stand-in for SupabaseBookingBackend.
    `results` is consumed one per fetch; the last entry repeats. An entry that
    is an exception instance is raised instead of returned.
    """

    def __init__(self, *results):
        self.results = list(results) or [[]]
        self.fetch_calls = 0
        self.subscription = None
        self.subscribe_calls = 0
        self.released = 0

    async def fetch_bookings(self):
        self.fetch_calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        await asyncio.sleep(0)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def subscribe(self, handler):
        self.subscribe_calls += 1

        async def release():
            self.released += 1

        self.subscription = ChangeSubscription(handler, on_close=release)
        return self.subscription

    def emit(self, event_type="INSERT"):
        self.subscription.deliver(ChangeEvent(event_type=event_type, table="bookings", schema_name="public"))


def mock_client(rows=None, error=None):
    """AsyncClient mock supporting table().select().order().execute() and channel()."""
    client = MagicMock()
    query = client.table.return_value.select.return_value.order.return_value
    if error is not None:
        query.execute = AsyncMock(side_effect=error)
    else:
        query.execute = AsyncMock(return_value=MagicMock(data=rows))

    channel = MagicMock()
    channel.on_postgres_changes.return_value = channel
    channel.subscribe = AsyncMock(return_value=channel)
    client.channel.return_value = channel
    client.remove_channel = AsyncMock()
    return client
