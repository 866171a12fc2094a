"""Order status transitions.

The status graph is deliberately permissive: an operator may move an order
from any status to any other (e.g. delivered → pending to correct a mistake).
All transition logic lives in ``status_change_fields`` so a constrained graph
can be introduced here without touching callers.
"""
from datetime import datetime
from typing import Any

from src.sf_common.enums import OrderStatus
from src.sf_common.errors import InvalidOrderStatusError

# Columns an admin mutation may write; anything else is a programming error.
MUTABLE_COLUMNS = frozenset(
    {"status", "shipped_at", "delivered_at", "delivery_partner_id", "tracking_number", "notes"}
)


def parse_status(value: OrderStatus | str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidOrderStatusError(str(value)) from None


def status_change_fields(
    new_status: OrderStatus | str, now: datetime
) -> dict[str, Any]:
    """Fields written by a transition to ``new_status``.

    shipped_at / delivered_at are stamped with ``now`` every time the target
    status is shipped / delivered, including repeated shipped → shipped.
    They are never cleared.
    """
    status = parse_status(new_status)
    fields: dict[str, Any] = {"status": status.value}
    if status == OrderStatus.SHIPPED:
        fields["shipped_at"] = now
    elif status == OrderStatus.DELIVERED:
        fields["delivered_at"] = now
    return fields
