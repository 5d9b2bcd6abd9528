import asyncio
from typing import Callable, List, Optional, Set

from app.core.logger import logger
from app.models.booking import BookingRecord
from app.models.dashboard import Notice
from app.services.db_service import BookingBackend, BookingFetchError, ChangeEvent, ChangeSubscription

FETCH_FAILED = Notice(title="Error", description="Failed to fetch bookings data")
UNEXPECTED_ERROR = Notice(title="Error", description="An unexpected error occurred")


class BookingSyncController:
    """
    Keeps an in-memory copy of the bookings table in step with the backend.

    The list is never patched: every change notification triggers a full
    re-fetch that replaces it wholesale. Re-fetches are not serialized, so
    when several overlap the last one to finish wins.
    """

    def __init__(self, backend: BookingBackend, on_notice: Optional[Callable[[Notice], None]] = None):
        self.backend = backend
        self.on_notice = on_notice
        self.bookings: List[BookingRecord] = []
        self.loading = True
        self.notices: List[Notice] = []
        self._subscription: Optional[ChangeSubscription] = None
        self._callback: Optional[Callable[[], None]] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def _notify(self, notice: Notice):
        self.notices.append(notice)
        if self.on_notice:
            self.on_notice(notice)

    async def initialize(self) -> None:
        """
        Full fetch, newest first. On failure the current list stays as it is
        and a single notice is raised; there is no retry. Notices only ever
        describe the latest fetch.
        """
        self.loading = True
        self.notices = []
        try:
            bookings = await self.backend.fetch_bookings()
            self.bookings = list(bookings)
        except BookingFetchError as e:
            logger.error("❌ Error fetching bookings: {}", e)
            self._notify(FETCH_FAILED)
        except Exception as e:
            logger.opt(exception=e).error("❌ Unexpected error while syncing bookings: {}", e)
            self._notify(UNEXPECTED_ERROR)
        finally:
            self.loading = False

    def _on_change(self, event: ChangeEvent) -> None:
        if not self.subscribed:
            return
        logger.info("🔄 Bookings data changed ({}), refetching...", event.event_type)
        task = asyncio.create_task(self.initialize())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        if self._callback:
            try:
                self._callback()
            except Exception as e:
                logger.opt(exception=e).warning("⚠️ Change callback failed: {}", e)

    async def subscribe_to_changes(self, callback: Optional[Callable[[], None]] = None) -> ChangeSubscription:
        if self.subscribed:
            return self._subscription
        self._callback = callback
        self._subscription = await self.backend.subscribe(self._on_change)
        return self._subscription

    async def teardown(self) -> None:
        subscription, self._subscription = self._subscription, None
        self._callback = None
        if subscription is not None:
            await subscription.unsubscribe()
            logger.info("🛑 Bookings subscription closed")

    async def mount(self) -> None:
        await self.initialize()
        try:
            await self.subscribe_to_changes()
        except Exception as e:
            # Dashboard still serves the last fetched list, just without live updates
            logger.error("❌ Could not subscribe to booking changes: {}", e)

    async def unmount(self) -> None:
        await self.teardown()

    async def wait_pending(self) -> None:
        """Waits for change-triggered re-fetches that are still running."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
