# src/sf_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sf_common.enums import OrderStatus
from src.sf_order.domain.models import DeliveryPartner, Order, OrderItem


class OrderRepositoryProtocol(Protocol):
    async def list_orders(
        self,
        status: OrderStatus | None,
        created_from: datetime | None,
        created_to: datetime | None,
        db: AsyncSession,
    ) -> list[Order]: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def list_items(self, order_id: str, db: AsyncSession) -> list[OrderItem]: ...

    async def update_fields(
        self, order_id: str, fields: dict[str, Any], db: AsyncSession
    ) -> None: ...

    async def delete_items_for_orders(
        self, order_ids: Sequence[str], db: AsyncSession
    ) -> int: ...

    async def delete_orders(
        self, order_ids: Sequence[str], db: AsyncSession
    ) -> list[str]: ...

    async def list_delivery_partners(self, db: AsyncSession) -> list[DeliveryPartner]: ...
