"""Order domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from src.sf_common.enums import OrderStatus
from src.sf_order.domain.risk import RiskAnnotation, annotate_risk

ALL_STATUSES = "all"


@dataclass(frozen=True)
class OrderAddress:
    """Shipping address snapshot taken at checkout (not owned by this core)."""
    full_name: str
    phone: str
    division: str = ""
    district: str = ""
    thana: str = ""
    address_line: str = ""


@dataclass
class Order:
    id: str
    order_number: str
    status: str  # OrderStatus value
    subtotal: float
    shipping_cost: float
    total: float
    payment_method: str
    created_at: datetime
    payment_transaction_id: str | None = None
    # Fulfillment
    delivery_partner_id: str | None = None
    delivery_partner_name: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    is_preorder: bool = False
    # Risk (computed upstream, read-only here)
    fraud_score: float = 0.0
    is_flagged: bool = False
    open_fraud_flags: int = 0
    # Set only by the shipped / delivered transitions
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    updated_at: datetime | None = None
    address: OrderAddress | None = None
    risk: RiskAnnotation = field(init=False)

    def __post_init__(self) -> None:
        self.risk = annotate_risk(self.fraud_score, self.is_flagged, self.open_fraud_flags)

    @property
    def customer_name(self) -> str:
        return self.address.full_name if self.address else ""

    @property
    def customer_phone(self) -> str:
        return self.address.phone if self.address else ""


@dataclass(frozen=True)
class OrderItem:
    """Line item snapshot, immutable once created."""
    id: str
    order_id: str
    product_name: str
    product_price: float
    quantity: int
    is_preorder: bool = False

    @property
    def line_total(self) -> float:
        return self.product_price * self.quantity


@dataclass(frozen=True)
class DeliveryPartner:
    id: str
    name: str


@dataclass(frozen=True)
class OrderFilters:
    """Last-used query parameters of the admin order view.

    ``status`` and the date range are pushed to the store; ``search`` is
    applied locally because it spans joined address fields.
    """
    status: OrderStatus | Literal["all"] = ALL_STATUSES
    date_from: date | None = None
    date_to: date | None = None
    search: str = ""

    @property
    def store_status(self) -> OrderStatus | None:
        return None if self.status == ALL_STATUSES else OrderStatus(self.status)

    def same_store_query(self, other: "OrderFilters") -> bool:
        """True when both filters resolve to the same server-side query."""
        return (
            self.status == other.status
            and self.date_from == other.date_from
            and self.date_to == other.date_to
        )
