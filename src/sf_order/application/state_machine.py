"""OrderStateMachine — single-order mutations.

Every mutation is one UPDATE in its own transaction; there is nothing to roll
back across calls. Concurrent operators are last-write-wins at the store.
"""
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from src.sf_common.database import SessionFactory, async_session_factory, session_scope
from src.sf_common.datetime_utils import utc_now
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import StoreWriteError
from src.sf_order.domain.repository import OrderRepositoryProtocol
from src.sf_order.domain.transitions import status_change_fields
from src.sf_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class OrderStateMachine:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._session_factory = session_factory or async_session_factory
        self._clock = clock

    async def set_status(
        self, order_id: str, new_status: OrderStatus | str
    ) -> dict[str, Any]:
        """Apply a status transition; returns the fields written."""
        fields = status_change_fields(new_status, self._clock())
        await self._write(order_id, fields)
        logger.info("Order %s status -> %s", order_id, fields["status"])
        return fields

    async def set_delivery_partner(
        self, order_id: str, partner_id: str | None
    ) -> dict[str, Any]:
        fields = {"delivery_partner_id": partner_id or None}
        await self._write(order_id, fields)
        return fields

    async def set_tracking_number(
        self, order_id: str, tracking_number: str | None
    ) -> dict[str, Any]:
        fields = {"tracking_number": tracking_number or None}
        await self._write(order_id, fields)
        return fields

    async def set_notes(self, order_id: str, notes: str | None) -> dict[str, Any]:
        fields = {"notes": notes or None}
        await self._write(order_id, fields)
        return fields

    async def mark_shipped(
        self, order_id: str, tracking_number: str | None
    ) -> dict[str, Any]:
        """Courier hand-off: shipped transition plus tracking number in one write."""
        fields = status_change_fields(OrderStatus.SHIPPED, self._clock())
        fields["tracking_number"] = tracking_number or None
        await self._write(order_id, fields)
        logger.info("Order %s shipped (tracking=%s)", order_id, tracking_number)
        return fields

    async def _write(self, order_id: str, fields: dict[str, Any]) -> None:
        try:
            async with session_scope(self._session_factory) as db:
                await self._repo.update_fields(order_id, fields, db)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error updating order %s (%s)", order_id, sorted(fields))
            raise StoreWriteError(str(exc)) from exc
