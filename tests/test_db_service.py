import pytest
import httpx
from unittest.mock import patch
from supabase import PostgrestAPIError

from app.services.db_service import BookingFetchError, ChangeEvent, SupabaseBookingBackend
from conftest import make_row, mock_client


@pytest.mark.asyncio
async def test_fetch_bookings_orders_newest_first():
    client = mock_client(rows=[make_row(id="b"), make_row(id="a")])
    backend = SupabaseBookingBackend(client=client, table="bookings")

    bookings = await backend.fetch_bookings()

    assert [b.id for b in bookings] == ["b", "a"]
    client.table.assert_called_once_with("bookings")
    client.table.return_value.select.assert_called_once_with("*")
    client.table.return_value.select.return_value.order.assert_called_once_with("created_at", desc=True)

@pytest.mark.asyncio
async def test_fetch_bookings_empty_table():
    backend = SupabaseBookingBackend(client=mock_client(rows=None))
    assert await backend.fetch_bookings() == []

@pytest.mark.asyncio
async def test_backend_error_becomes_fetch_error():
    error = PostgrestAPIError({"message": "permission denied", "code": "42501"})
    backend = SupabaseBookingBackend(client=mock_client(error=error))

    with pytest.raises(BookingFetchError):
        await backend.fetch_bookings()

@pytest.mark.asyncio
async def test_network_error_becomes_fetch_error():
    backend = SupabaseBookingBackend(client=mock_client(error=httpx.ConnectError("refused")))

    with pytest.raises(BookingFetchError):
        await backend.fetch_bookings()

@pytest.mark.asyncio
async def test_missing_credentials():
    backend = SupabaseBookingBackend()
    with patch("app.services.db_service.settings.SUPABASE_URL", ""), \
         patch("app.services.db_service.settings.SUPABASE_KEY", ""):
        with pytest.raises(BookingFetchError):
            await backend.fetch_bookings()

@pytest.mark.asyncio
async def test_subscribe_wires_channel_and_releases_it():
    client = mock_client(rows=[])
    backend = SupabaseBookingBackend(client=client, table="bookings", schema="public")
    events = []

    subscription = await backend.subscribe(events.append)

    channel = client.channel.return_value
    kwargs = channel.on_postgres_changes.call_args.kwargs
    assert kwargs["event"] == "*"
    assert kwargs["schema"] == "public"
    assert kwargs["table"] == "bookings"
    channel.subscribe.assert_awaited_once()

    # Simulate realtime pushing a row change
    kwargs["callback"]({"data": {"type": "DELETE", "table": "bookings", "schema": "public",
                                 "commit_timestamp": "2026-10-18T10:00:00Z"}, "ids": [1]})
    assert [e.event_type for e in events] == ["DELETE"]

    await subscription.unsubscribe()
    await subscription.unsubscribe()
    client.remove_channel.assert_awaited_once_with(channel)

def test_change_event_from_payload_variants():
    assert ChangeEvent.from_payload({"eventType": "INSERT", "table": "bookings"}).event_type == "INSERT"
    assert ChangeEvent.from_payload({"data": {"type": "UPDATE"}}).event_type == "UPDATE"
    assert ChangeEvent.from_payload(None).event_type == "*"
