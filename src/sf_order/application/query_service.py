"""OrderQueryService — builds the filtered, newest-first admin order list.

Read-only. Status and created-at range go to the store; the free-text
search runs locally because it spans the joined address fields.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from src.sf_common.database import SessionFactory, async_session_factory
from src.sf_common.datetime_utils import end_of_day, start_of_day
from src.sf_common.errors import OrderNotFoundError, StoreQueryError
from src.sf_order.domain.models import DeliveryPartner, Order, OrderFilters, OrderItem
from src.sf_order.domain.repository import OrderRepositoryProtocol
from src.sf_order.domain.search import filter_orders
from src.sf_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


@dataclass
class OrderQueryResult:
    # Store rows for the status/date bounds; the search term is not applied here.
    orders: list[Order] = field(default_factory=list)
    error: StoreQueryError | None = None
    search: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def matching(self) -> list[Order]:
        return filter_orders(self.orders, self.search)


@dataclass
class OrderDetail:
    order: Order
    items: list[OrderItem]


class OrderQueryService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._session_factory = session_factory or async_session_factory

    async def fetch(self, filters: OrderFilters) -> OrderQueryResult:
        """Never raises for store failures; the error is returned alongside an empty list.

        ``orders`` holds every row inside the status/date bounds. Use
        ``matching()`` for the rows that also pass the search term.
        """
        created_from = start_of_day(filters.date_from) if filters.date_from else None
        created_to = end_of_day(filters.date_to) if filters.date_to else None
        try:
            async with self._session_factory() as db:
                orders = await self._repo.list_orders(
                    filters.store_status, created_from, created_to, db
                )
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error fetching orders (filters=%s)", filters)
            return OrderQueryResult(error=StoreQueryError(str(exc)), search=filters.search)
        return OrderQueryResult(orders=orders, search=filters.search)

    async def get_order_detail(self, order_id: str) -> OrderDetail:
        try:
            async with self._session_factory() as db:
                order = await self._repo.get_by_id(order_id, db)
                if order is None:
                    raise OrderNotFoundError(order_id)
                items = await self._repo.list_items(order_id, db)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error fetching order %s", order_id)
            raise StoreQueryError(str(exc)) from exc
        return OrderDetail(order=order, items=items)

    async def list_delivery_partners(self) -> list[DeliveryPartner]:
        try:
            async with self._session_factory() as db:
                return await self._repo.list_delivery_partners(db)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error fetching delivery partners")
            raise StoreQueryError(str(exc)) from exc
