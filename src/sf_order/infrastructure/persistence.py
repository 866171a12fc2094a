# src/sf_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sf_common.enums import OrderStatus
from src.sf_common.errors import OrderNotFoundError
from src.sf_order.domain.models import DeliveryPartner, Order, OrderAddress, OrderItem
from src.sf_order.domain.transitions import MUTABLE_COLUMNS

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    o.id, o.order_number, o.status, o.subtotal, o.shipping_cost, o.total,
    o.payment_method, o.payment_transaction_id, o.delivery_partner_id,
    o.tracking_number, o.notes, o.is_preorder, o.fraud_score, o.is_flagged,
    o.shipped_at, o.delivered_at, o.created_at, o.updated_at,
    a.full_name AS address_full_name, a.phone AS address_phone,
    a.division AS address_division, a.district AS address_district,
    a.thana AS address_thana, a.address_line AS address_line,
    dp.name AS delivery_partner_name,
    (SELECT COUNT(*) FROM order_fraud_flags f
      WHERE f.order_id = o.id AND f.is_resolved = FALSE) AS open_fraud_flags
"""

_FROM_JOINED = """
    FROM orders o
    LEFT JOIN addresses a ON a.id = o.address_id
    LEFT JOIN delivery_partners dp ON dp.id = o.delivery_partner_id
"""

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    {_FROM_JOINED}
    WHERE (CAST(:status AS TEXT) IS NULL OR o.status = :status)
      AND (CAST(:created_from AS TIMESTAMPTZ) IS NULL OR o.created_at >= :created_from)
      AND (CAST(:created_to AS TIMESTAMPTZ) IS NULL OR o.created_at <= :created_to)
    ORDER BY o.created_at DESC
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    {_FROM_JOINED}
    WHERE o.id = :id
""")

_LIST_ITEMS_SQL = text("""
    SELECT id, order_id, product_name, product_price, quantity, is_preorder
    FROM order_items WHERE order_id = :order_id
    ORDER BY created_at ASC
""")

_DELETE_ITEMS_SQL = text(
    "DELETE FROM order_items WHERE order_id IN :order_ids"
).bindparams(bindparam("order_ids", expanding=True))

_DELETE_ORDERS_SQL = text(
    "DELETE FROM orders WHERE id IN :order_ids RETURNING id"
).bindparams(bindparam("order_ids", expanding=True))

_LIST_PARTNERS_SQL = text("""
    SELECT id, name FROM delivery_partners
    WHERE is_active = TRUE
    ORDER BY name ASC
""")


def _update_sql(columns: Sequence[str]) -> Any:
    assignments = ", ".join(f"{c} = :{c}" for c in columns)
    return text(f"UPDATE orders SET {assignments}, updated_at = NOW() WHERE id = :id")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_address(row: Any) -> OrderAddress | None:
    if row.address_full_name is None:
        return None
    return OrderAddress(
        full_name=row.address_full_name,
        phone=row.address_phone or "",
        division=row.address_division or "",
        district=row.address_district or "",
        thana=row.address_thana or "",
        address_line=row.address_line or "",
    )


def _row_to_order(row: Any) -> Order:
    """Convert a joined DB result row to an Order domain object."""
    return Order(
        id=str(row.id),
        order_number=row.order_number,
        status=row.status or OrderStatus.PENDING.value,
        subtotal=float(row.subtotal),
        shipping_cost=float(row.shipping_cost),
        total=float(row.total),
        payment_method=row.payment_method,
        payment_transaction_id=row.payment_transaction_id,
        delivery_partner_id=(
            str(row.delivery_partner_id) if row.delivery_partner_id else None
        ),
        delivery_partner_name=row.delivery_partner_name,
        tracking_number=row.tracking_number,
        notes=row.notes,
        is_preorder=bool(row.is_preorder),
        fraud_score=float(row.fraud_score or 0),
        is_flagged=bool(row.is_flagged),
        open_fraud_flags=int(row.open_fraud_flags or 0),
        shipped_at=row.shipped_at,
        delivered_at=row.delivered_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        address=_row_to_address(row),
    )


def _row_to_item(row: Any) -> OrderItem:
    return OrderItem(
        id=str(row.id),
        order_id=str(row.order_id),
        product_name=row.product_name,
        product_price=float(row.product_price),
        quantity=row.quantity,
        is_preorder=bool(row.is_preorder),
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def list_orders(
        self,
        status: OrderStatus | None,
        created_from: datetime | None,
        created_to: datetime | None,
        db: AsyncSession,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "status": status.value if status else None,
                "created_from": created_from,
                "created_to": created_to,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_items(self, order_id: str, db: AsyncSession) -> list[OrderItem]:
        result = await db.execute(_LIST_ITEMS_SQL, {"order_id": order_id})
        return [_row_to_item(row) for row in result.fetchall()]

    async def update_fields(
        self, order_id: str, fields: dict[str, Any], db: AsyncSession
    ) -> None:
        """Single-statement partial update; raises 4004 when no row matched."""
        unknown = set(fields) - MUTABLE_COLUMNS
        if unknown or not fields:
            raise ValueError(f"Not an updatable order field set: {sorted(fields)}")
        columns = sorted(fields)
        result = await db.execute(_update_sql(columns), {"id": order_id, **fields})
        if result.rowcount == 0:
            raise OrderNotFoundError(order_id)

    async def delete_items_for_orders(
        self, order_ids: Sequence[str], db: AsyncSession
    ) -> int:
        result = await db.execute(_DELETE_ITEMS_SQL, {"order_ids": list(order_ids)})
        return result.rowcount

    async def delete_orders(
        self, order_ids: Sequence[str], db: AsyncSession
    ) -> list[str]:
        result = await db.execute(_DELETE_ORDERS_SQL, {"order_ids": list(order_ids)})
        return [str(row.id) for row in result.fetchall()]

    async def list_delivery_partners(self, db: AsyncSession) -> list[DeliveryPartner]:
        result = await db.execute(_LIST_PARTNERS_SQL)
        return [DeliveryPartner(id=str(row.id), name=row.name) for row in result.fetchall()]
