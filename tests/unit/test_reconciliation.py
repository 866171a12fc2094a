"""Unit tests for ReconciliationLoop and the change-event payload."""
import asyncio

import pytest

from src.sf_common.enums import ChangeEventType
from src.sf_order.application.reconciliation import WATCHED_TABLES, ReconciliationLoop
from src.sf_realtime.domain.events import ChangeEvent


class CountingRefresh:
    def __init__(self) -> None:
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self) -> None:
        self.calls += 1
        self.started.set()
        await self.release.wait()


class TestChangeEvent:
    def test_from_payload(self) -> None:
        event = ChangeEvent.from_payload('{"event": "update", "table": "orders"}')
        assert event == ChangeEvent(event=ChangeEventType.UPDATE, table="orders")

    def test_rejects_unknown_event(self) -> None:
        with pytest.raises(ValueError):
            ChangeEvent.from_payload('{"event": "TRUNCATE", "table": "orders"}')


class TestReconciliationLoop:
    @pytest.mark.asyncio
    async def test_subscribes_to_watched_tables(self, feed) -> None:
        loop = ReconciliationLoop(feed, CountingRefresh())
        assert await loop.start() is True
        assert loop.is_subscribed
        assert feed.subscriptions[0].tables == frozenset(WATCHED_TABLES)
        await loop.stop()

    @pytest.mark.asyncio
    async def test_change_triggers_requery(self, feed) -> None:
        refresh = CountingRefresh()
        loop = ReconciliationLoop(feed, refresh)
        await loop.start()

        feed.emit("INSERT", "order_items")
        await loop.wait_idle()

        assert refresh.calls == 1
        await loop.stop()

    @pytest.mark.asyncio
    async def test_unwatched_table_ignored(self, feed) -> None:
        refresh = CountingRefresh()
        loop = ReconciliationLoop(feed, refresh)
        await loop.start()

        feed.emit("UPDATE", "addresses")
        await loop.wait_idle()

        assert refresh.calls == 0
        await loop.stop()

    @pytest.mark.asyncio
    async def test_burst_is_coalesced(self, feed) -> None:
        refresh = CountingRefresh()
        refresh.release.clear()
        loop = ReconciliationLoop(feed, refresh)
        await loop.start()

        feed.emit("UPDATE", "orders")
        await refresh.started.wait()
        for _ in range(5):
            feed.emit("UPDATE", "orders")
        refresh.release.set()
        await loop.wait_idle()

        # One query for the first event, one for everything queued behind it.
        assert refresh.calls == 2
        await loop.stop()

    @pytest.mark.asyncio
    async def test_failed_requery_keeps_loop_alive(self, feed) -> None:
        calls = 0

        async def flaky() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("store down")

        loop = ReconciliationLoop(feed, flaky)
        await loop.start()
        feed.emit("DELETE", "orders")
        await loop.wait_idle()
        feed.emit("DELETE", "orders")
        await loop.wait_idle()

        assert calls == 2
        await loop.stop()

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, feed) -> None:
        refresh = CountingRefresh()
        loop = ReconciliationLoop(feed, refresh)
        await loop.start()
        await loop.stop()

        assert not loop.is_subscribed
        assert feed.subscriptions[0].closed
        feed.emit("INSERT", "orders")
        await loop.wait_idle()
        assert refresh.calls == 0

    @pytest.mark.asyncio
    async def test_restart_replaces_subscription(self, feed) -> None:
        loop = ReconciliationLoop(feed, CountingRefresh())
        await loop.start()
        await loop.restart()

        assert len(feed.subscriptions) == 2
        assert len(feed.open_subscriptions) == 1
        await loop.stop()

    @pytest.mark.asyncio
    async def test_subscribe_failure_degrades(self, feed) -> None:
        feed.fail_subscribe = True
        loop = ReconciliationLoop(feed, CountingRefresh())
        assert await loop.start() is False
        assert not loop.is_subscribed
        await loop.stop()
