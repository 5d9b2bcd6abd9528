import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Protocol

import httpx
from pydantic import BaseModel
from supabase import AsyncClient, PostgrestAPIError, create_async_client

from app.core.config import settings
from app.core.logger import logger
from app.models.booking import BookingRecord


class BookingFetchError(Exception):
    """The backend could not be reached or rejected the query."""


class ChangeEvent(BaseModel):
    event_type: str = "*"
    table: str = ""
    schema_name: str = ""
    commit_timestamp: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ChangeEvent":
        """
        Realtime hands us either {"data": {...}, "ids": [...]} or the bare data
        dict depending on the client version. The row itself is not kept:
        every change leads to a full re-fetch anyway.
        """
        data = payload.get("data", payload) if isinstance(payload, dict) else {}
        if not isinstance(data, dict):
            data = {}
        return cls(
            event_type=str(data.get("type") or data.get("eventType") or "*"),
            table=str(data.get("table") or ""),
            schema_name=str(data.get("schema") or ""),
            commit_timestamp=data.get("commit_timestamp"),
        )


_CLOSED = object()


class ChangeSubscription:
    """
    Handle for one open change channel.

    Events go to the attached handler as they arrive and are also queued so
    a consumer can `async for event in subscription`. The stream ends once
    `unsubscribe()` is called; after that, late events are dropped.
    """

    def __init__(self, handler: Optional[Callable[[ChangeEvent], None]] = None,
                 on_close: Optional[Callable[[], Awaitable[None]]] = None):
        self.handler = handler
        self.on_close = on_close
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: ChangeEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping {event.event_type} on closed subscription")
            return
        self._queue.put_nowait(event)
        if self.handler:
            self.handler(event)

    async def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self.on_close:
            await self.on_close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class BookingBackend(Protocol):
    async def fetch_bookings(self) -> List[BookingRecord]: ...

    async def subscribe(self, handler: Callable[[ChangeEvent], None]) -> ChangeSubscription: ...


class SupabaseBookingBackend:
    """Reads the bookings table and listens to its realtime changes."""

    def __init__(self, client: Optional[AsyncClient] = None,
                 table: Optional[str] = None, schema: Optional[str] = None):
        self._client = client
        self.table = table or settings.BOOKINGS_TABLE
        self.schema = schema or settings.BOOKINGS_SCHEMA

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.warning("⚠️ Supabase credentials missing")
                raise BookingFetchError("Supabase credentials are not configured")
            self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
            logger.info("✅ Supabase Async client initialized")
        return self._client

    async def fetch_bookings(self) -> List[BookingRecord]:
        """
        Full-table read, newest first. No pagination, no filtering.
        Raises BookingFetchError on backend/network failure.
        """
        client = await self.get_client()
        started = datetime.now()

        try:
            response = await client.table(self.table)\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
        except PostgrestAPIError as e:
            raise BookingFetchError(f"Backend rejected bookings query: {e.message}") from e
        except httpx.HTTPError as e:
            raise BookingFetchError(f"Could not reach backend: {e}") from e

        rows = response.data or []
        bookings = [BookingRecord.model_validate(row) for row in rows]

        duration = (datetime.now() - started).total_seconds()
        logger.info(f"📥 Fetched {len(bookings)} bookings in {duration:.2f}s")
        return bookings

    async def subscribe(self, handler: Callable[[ChangeEvent], None]) -> ChangeSubscription:
        """
        Opens the realtime channel for every row-level event on the table.
        """
        client = await self.get_client()
        subscription = ChangeSubscription(handler)

        channel = client.channel(settings.REALTIME_CHANNEL)
        channel.on_postgres_changes(
            event="*",
            schema=self.schema,
            table=self.table,
            callback=lambda payload: subscription.deliver(ChangeEvent.from_payload(payload)),
        )
        await channel.subscribe()
        logger.info(f"📡 Subscribed to changes on {self.schema}.{self.table} ({settings.REALTIME_CHANNEL})")

        async def release():
            await client.remove_channel(channel)
            logger.info(f"🔌 Channel {settings.REALTIME_CHANNEL} removed")

        subscription.on_close = release
        return subscription


db_service = SupabaseBookingBackend()
