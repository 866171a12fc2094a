"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DocumentKind(str, Enum):
    """Printable documents produced by the renderer, one per order."""
    INVOICE = "invoice"
    DELIVERY_SLIP = "delivery_slip"


class ChangeEventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeTable(str, Enum):
    """Tables whose row changes invalidate the admin order view."""
    ORDERS = "orders"
    ORDER_ITEMS = "order_items"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DeliveryProviderType(str, Enum):
    PATHAO = "pathao"
    STEADFAST = "steadfast"
    REDX = "redx"
    PAPERFLY = "paperfly"
    ECOURIER = "ecourier"
    DELIVERYTIGER = "deliverytiger"
