"""Shared test fixtures: in-memory store, session factory and external-service fakes."""
import dataclasses
from collections.abc import Callable, Collection, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.sf_common.enums import DocumentKind, OrderStatus
from src.sf_common.errors import DocumentRenderError, OrderNotFoundError
from src.sf_order.domain.models import DeliveryPartner, Order, OrderAddress, OrderItem
from src.sf_realtime.domain.events import ChangeEvent, ChangeListener

_BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _store_error(msg: str = "connection refused") -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(msg))


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = dict(
        id="ord-1",
        order_number="SF-1001",
        status=OrderStatus.PENDING.value,
        subtotal=1000.0,
        shipping_cost=60.0,
        total=1060.0,
        payment_method="cod",
        created_at=_BASE_TIME,
        address=OrderAddress(
            full_name="Rahim Uddin",
            phone="01711000000",
            division="Dhaka",
            district="Dhaka",
            thana="Mirpur",
            address_line="House 12, Road 3",
        ),
    )
    defaults.update(kwargs)
    return Order(**defaults)


def _make_orders(n: int, status: str = OrderStatus.PENDING.value) -> list[Order]:
    """``n`` orders, one hour apart, ord-0 being the oldest."""
    return [
        _make_order(
            id=f"ord-{i}",
            order_number=f"SF-{1000 + i}",
            status=status,
            created_at=_BASE_TIME + timedelta(hours=i),
        )
        for i in range(n)
    ]


class FakeSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


class FakeSessionFactory:
    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession()
        self.sessions.append(session)
        return session


class InMemoryOrderRepository:
    """OrderRepositoryProtocol over dicts, with store-failure switches."""

    def __init__(self, orders: Sequence[Order] = ()) -> None:
        self.orders: dict[str, Order] = {o.id: o for o in orders}
        self.items: dict[str, list[OrderItem]] = {}
        self.partners: list[DeliveryPartner] = []
        self.fail_queries = False
        self.fail_update_ids: set[str] = set()
        self.fail_delete_items = False
        self.fail_delete_orders = False
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.list_calls: list[tuple[Any, ...]] = []

    def add(self, order: Order, items: Sequence[OrderItem] = ()) -> None:
        self.orders[order.id] = order
        if items:
            self.items[order.id] = list(items)

    async def list_orders(
        self,
        status: OrderStatus | None,
        created_from: datetime | None,
        created_to: datetime | None,
        db: Any,
    ) -> list[Order]:
        self.list_calls.append((status, created_from, created_to))
        if self.fail_queries:
            raise _store_error()
        rows = [
            o for o in self.orders.values()
            if (status is None or o.status == status.value)
            and (created_from is None or o.created_at >= created_from)
            and (created_to is None or o.created_at <= created_to)
        ]
        return sorted(rows, key=lambda o: o.created_at, reverse=True)

    async def get_by_id(self, order_id: str, db: Any) -> Order | None:
        if self.fail_queries:
            raise _store_error()
        return self.orders.get(order_id)

    async def list_items(self, order_id: str, db: Any) -> list[OrderItem]:
        return list(self.items.get(order_id, []))

    async def update_fields(self, order_id: str, fields: dict[str, Any], db: Any) -> None:
        if order_id in self.fail_update_ids:
            raise _store_error("write timeout")
        if order_id not in self.orders:
            raise OrderNotFoundError(order_id)
        self.updates.append((order_id, dict(fields)))
        self.orders[order_id] = dataclasses.replace(self.orders[order_id], **fields)

    async def delete_items_for_orders(self, order_ids: Sequence[str], db: Any) -> int:
        if self.fail_delete_items:
            raise _store_error("permission denied for table order_items")
        removed = 0
        for order_id in order_ids:
            removed += len(self.items.pop(order_id, []))
        return removed

    async def delete_orders(self, order_ids: Sequence[str], db: Any) -> list[str]:
        if self.fail_delete_orders:
            raise _store_error("permission denied for table orders")
        if any(self.items.get(i) for i in order_ids):
            raise _store_error("violates foreign key constraint")
        return [i for i in order_ids if self.orders.pop(i, None) is not None]

    async def list_delivery_partners(self, db: Any) -> list[DeliveryPartner]:
        return list(self.partners)


class FakeSubscription:
    def __init__(
        self, feed: "FakeChangeFeed", tables: Collection[str], listener: ChangeListener
    ) -> None:
        self._feed = feed
        self.tables = frozenset(tables)
        self.listener = listener
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeChangeFeed:
    def __init__(self) -> None:
        self.subscriptions: list[FakeSubscription] = []
        self.fail_subscribe = False

    async def subscribe(
        self, tables: Collection[str], listener: ChangeListener
    ) -> FakeSubscription:
        if self.fail_subscribe:
            raise OSError("realtime endpoint unreachable")
        sub = FakeSubscription(self, tables, listener)
        self.subscriptions.append(sub)
        return sub

    @property
    def open_subscriptions(self) -> list[FakeSubscription]:
        return [s for s in self.subscriptions if not s.closed]

    def emit(self, event: str, table: str) -> None:
        change = ChangeEvent.from_payload(f'{{"event": "{event}", "table": "{table}"}}')
        for sub in self.open_subscriptions:
            if change.table in sub.tables:
                sub.listener(change)


class FakeRenderer:
    def __init__(self, fail_ids: Collection[str] = ()) -> None:
        self.fail_ids = set(fail_ids)
        self.calls: list[tuple[DocumentKind, str]] = []

    async def render(self, kind: DocumentKind, order_id: str) -> str:
        self.calls.append((kind, order_id))
        if order_id in self.fail_ids:
            raise DocumentRenderError(order_id, "HTTP 500: template error")
        return f"<html>{kind.value}:{order_id}</html>"


class RecordingNotifier:
    def __init__(self) -> None:
        self.successes: list[str] = []
        self.errors: list[str] = []

    async def success(self, message: str) -> None:
        self.successes.append(message)

    async def error(self, message: str) -> None:
        self.errors.append(message)


class FixedClock:
    def __init__(self, start: datetime = _BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)




@pytest.fixture
def order_factory() -> Callable[..., Order]:
    return _make_order


@pytest.fixture
def orders_factory() -> Callable[..., list[Order]]:
    return _make_orders


@pytest.fixture
def repo_factory() -> Callable[..., InMemoryOrderRepository]:
    return InMemoryOrderRepository


@pytest.fixture
def repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository(_make_orders(3))


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()
