"""ReconciliationLoop — keeps the admin order view in step with the store.

Change notifications are forwarded onto an ``asyncio.Queue`` by the feed
listener; a consumer task drains the queue and re-runs the view query. Any
insert/update/delete on the watched tables triggers a full re-query; bursts
that queue up while a query is running are coalesced into one refetch.
"""
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Collection

from src.sf_common.enums import ChangeTable
from src.sf_realtime.domain.events import ChangeEvent, ChangeFeedProtocol, Subscription

logger = logging.getLogger(__name__)

WATCHED_TABLES: tuple[str, ...] = (ChangeTable.ORDERS.value, ChangeTable.ORDER_ITEMS.value)


class ReconciliationLoop:
    def __init__(
        self,
        feed: ChangeFeedProtocol,
        on_change: Callable[[], Awaitable[None]],
        tables: Collection[str] = WATCHED_TABLES,
    ) -> None:
        self._feed = feed
        self._on_change = on_change
        self._tables = tuple(tables)
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._subscription: Subscription | None = None
        self._consumer: asyncio.Task[None] | None = None

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None

    async def start(self) -> bool:
        """Subscribe and start consuming. Returns False if the feed is unavailable."""
        if self._subscription is not None:
            return True
        try:
            self._subscription = await self._feed.subscribe(self._tables, self._enqueue)
        except Exception:
            logger.exception("Realtime subscription failed; changes need a manual refresh")
            return False
        self._consumer = asyncio.create_task(self._consume(), name="order-reconciliation")
        return True

    async def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        consumer, self._consumer = self._consumer, None
        if subscription is not None:
            try:
                await subscription.close()
            except Exception:
                logger.exception("Error closing realtime subscription")
        if consumer is not None:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        self._drain()

    async def restart(self) -> bool:
        await self.stop()
        return await self.start()

    async def wait_idle(self) -> None:
        """Block until every received notification has been reconciled."""
        await self._queue.join()

    def _enqueue(self, event: ChangeEvent) -> None:
        logger.debug("Change notification: %s on %s", event.event.value, event.table)
        self._queue.put_nowait(event)

    def _drain(self) -> int:
        drained = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return drained
            self._queue.task_done()
            drained += 1

    async def _consume(self) -> None:
        while True:
            await self._queue.get()
            coalesced = self._drain()
            try:
                await self._on_change()
            except Exception:
                logger.exception("Re-query after change notification failed")
            finally:
                self._queue.task_done()
            if coalesced:
                logger.debug("Coalesced %d extra notifications", coalesced)
