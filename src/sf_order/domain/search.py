"""Client-side free-text filter over loaded orders."""
from collections.abc import Iterable

from src.sf_order.domain.models import Order


def matches_search(order: Order, term: str) -> bool:
    """Case-insensitive substring match on order number, customer name and phone."""
    needle = term.strip().lower()
    if not needle:
        return True
    haystacks = (order.order_number, order.customer_name, order.customer_phone)
    return any(needle in (h or "").lower() for h in haystacks)


def filter_orders(orders: Iterable[Order], term: str) -> list[Order]:
    return [o for o in orders if matches_search(o, term)]
