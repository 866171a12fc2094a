"""Per-courier order payloads for the delivery-api gateway.

Each courier names the same recipient fields differently; the gateway passes
these bodies through to the courier API unchanged. Cash-on-delivery orders
collect the order total; prepaid orders collect nothing.
"""
from typing import Any

from src.sf_common.enums import DeliveryProviderType
from src.sf_order.domain.models import Order


def cod_amount(order: Order) -> float:
    return order.total if order.payment_method == "cod" else 0


def build_order_payload(order: Order, provider_type: str) -> dict[str, Any] | None:
    """Courier-specific body, or None for orders without address / unknown couriers."""
    addr = order.address
    if addr is None:
        return None
    try:
        kind = DeliveryProviderType(provider_type)
    except ValueError:
        return None
    collect = cod_amount(order)

    if kind == DeliveryProviderType.PATHAO:
        return {
            "order_number": order.order_number,
            "recipient_name": addr.full_name,
            "recipient_phone": addr.phone,
            "recipient_address": f"{addr.address_line}, {addr.thana}, {addr.district}",
            "recipient_city": addr.district,
            "recipient_zone": addr.thana,
            "amount_to_collect": collect,
            "quantity": 1,
            "weight": 0.5,
        }
    if kind == DeliveryProviderType.STEADFAST:
        return {
            "order_number": order.order_number,
            "recipient_name": addr.full_name,
            "recipient_phone": addr.phone,
            "recipient_address": (
                f"{addr.address_line}, {addr.thana}, {addr.district}, {addr.division}"
            ),
            "cod_amount": collect,
        }
    if kind == DeliveryProviderType.REDX:
        return {
            "order_number": order.order_number,
            "customer_name": addr.full_name,
            "customer_phone": addr.phone,
            "customer_address": f"{addr.address_line}, {addr.thana}, {addr.district}",
            "delivery_area": addr.district,
            "cash_collection": collect,
            "value": order.total,
            "weight": 500,  # grams
        }
    if kind == DeliveryProviderType.PAPERFLY:
        return {
            "order_number": order.order_number,
            "customer_name": addr.full_name,
            "customer_phone": addr.phone,
            "customer_address": addr.address_line,
            "customer_thana": addr.thana,
            "customer_district": addr.district,
            "package_price": collect,
        }
    if kind == DeliveryProviderType.ECOURIER:
        return {
            "order_number": order.order_number,
            "recipient_name": addr.full_name,
            "recipient_mobile": addr.phone,
            "recipient_address": addr.address_line,
            "recipient_city": addr.district,
            "recipient_thana": addr.thana,
            "product_price": str(order.total),
            "payment_method": "COD" if order.payment_method == "cod" else "PREPAID",
        }
    return {
        "order_number": order.order_number,
        "customer_name": addr.full_name,
        "customer_phone": addr.phone,
        "customer_address": f"{addr.address_line}, {addr.thana}, {addr.district}",
        "cod_amount": collect,
        "weight": 0.5,
        "district": addr.district,
        "thana": addr.thana,
    }


def create_action(provider_type: str) -> str:
    return "create_parcel" if provider_type == DeliveryProviderType.REDX.value else "create_order"


def steadfast_bulk_entry(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "invoice": payload["order_number"],
        "recipient_name": payload["recipient_name"],
        "recipient_phone": payload["recipient_phone"],
        "recipient_address": payload["recipient_address"],
        "cod_amount": payload.get("cod_amount") or 0,
    }


def extract_tracking_id(data: Any) -> str | None:
    """Couriers report the consignment under several keys, sometimes nested in ``data``."""
    if not isinstance(data, dict):
        return None
    for source in (data, data.get("data")):
        if not isinstance(source, dict):
            continue
        for key in ("consignment_id", "tracking_code", "tracking_id"):
            value = source.get(key)
            if value:
                return str(value)
    return None
