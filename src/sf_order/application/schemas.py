# src/sf_order/application/schemas.py
from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from src.sf_common.enums import DocumentKind, OrderStatus, RiskLevel
from src.sf_delivery.domain.models import DispatchReport
from src.sf_order.application.query_service import OrderDetail
from src.sf_order.domain.models import Order, OrderAddress, OrderFilters, OrderItem
from src.sf_order.domain.operations import (
    BulkOperation,
    BulkResult,
    DeleteOrders,
    GenerateDocument,
    StatusChange,
)

# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class AddressResponse(BaseModel):
    full_name: str
    phone: str
    division: str
    district: str
    thana: str
    address_line: str

    @classmethod
    def from_domain(cls, addr: OrderAddress) -> "AddressResponse":
        return cls(
            full_name=addr.full_name,
            phone=addr.phone,
            division=addr.division,
            district=addr.district,
            thana=addr.thana,
            address_line=addr.address_line,
        )


class RiskResponse(BaseModel):
    score: float
    flagged: bool
    open_flags: int
    level: RiskLevel
    needs_review: bool


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: OrderStatus
    subtotal: float
    shipping_cost: float
    total: float
    payment_method: str
    payment_transaction_id: str | None = None
    delivery_partner_id: str | None = None
    delivery_partner_name: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    is_preorder: bool = False
    risk: RiskResponse
    address: AddressResponse | None = None
    created_at: datetime
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    @classmethod
    def from_domain(cls, o: Order) -> "OrderResponse":
        return cls(
            id=o.id,
            order_number=o.order_number,
            status=OrderStatus(o.status),
            subtotal=o.subtotal,
            shipping_cost=o.shipping_cost,
            total=o.total,
            payment_method=o.payment_method,
            payment_transaction_id=o.payment_transaction_id,
            delivery_partner_id=o.delivery_partner_id,
            delivery_partner_name=o.delivery_partner_name,
            tracking_number=o.tracking_number,
            notes=o.notes,
            is_preorder=o.is_preorder,
            risk=RiskResponse(
                score=o.risk.score,
                flagged=o.risk.flagged,
                open_flags=o.risk.open_flags,
                level=o.risk.level,
                needs_review=o.risk.needs_review,
            ),
            address=AddressResponse.from_domain(o.address) if o.address else None,
            created_at=o.created_at,
            shipped_at=o.shipped_at,
            delivered_at=o.delivered_at,
        )


class OrderItemResponse(BaseModel):
    id: str
    product_name: str
    product_price: float
    quantity: int
    line_total: float
    is_preorder: bool

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,
            product_name=item.product_name,
            product_price=item.product_price,
            quantity=item.quantity,
            line_total=item.line_total,
            is_preorder=item.is_preorder,
        )


class OrderDetailResponse(BaseModel):
    order: OrderResponse
    items: list[OrderItemResponse]

    @classmethod
    def from_domain(cls, detail: OrderDetail) -> "OrderDetailResponse":
        return cls(
            order=OrderResponse.from_domain(detail.order),
            items=[OrderItemResponse.from_domain(i) for i in detail.items],
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    error: str | None = None


class DeliveryPartnerResponse(BaseModel):
    id: str
    name: str


# ---------------------------------------------------------------------------
# Query / mutation requests
# ---------------------------------------------------------------------------


class OrderFilterParams(BaseModel):
    status: OrderStatus | Literal["all"] = "all"
    date_from: date | None = None
    date_to: date | None = None
    q: str = ""

    def to_domain(self) -> OrderFilters:
        return OrderFilters(
            status=self.status,
            date_from=self.date_from,
            date_to=self.date_to,
            search=self.q,
        )


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class DeliveryPartnerUpdateRequest(BaseModel):
    delivery_partner_id: str | None = None


class TrackingNumberUpdateRequest(BaseModel):
    tracking_number: str | None = None

    @field_validator("tracking_number")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        return v.strip() or None if v is not None else None


class NotesUpdateRequest(BaseModel):
    notes: str | None = None


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------


class StatusChangeOp(BaseModel):
    type: Literal["status_change"]
    status: OrderStatus


class DeleteOp(BaseModel):
    type: Literal["delete"]


class GenerateDocumentOp(BaseModel):
    type: Literal["generate_document"]
    kind: DocumentKind


BulkOperationSpec = Annotated[
    StatusChangeOp | DeleteOp | GenerateDocumentOp, Field(discriminator="type")
]


def operation_to_domain(op: StatusChangeOp | DeleteOp | GenerateDocumentOp) -> BulkOperation:
    if isinstance(op, StatusChangeOp):
        return StatusChange(status=op.status)
    if isinstance(op, DeleteOp):
        return DeleteOrders()
    return GenerateDocument(kind=op.kind)


class BulkRequest(BaseModel):
    ids: list[str] = Field(min_length=1)
    operation: BulkOperationSpec


class BulkFailureResponse(BaseModel):
    order_id: str
    error: str


class RenderedDocumentResponse(BaseModel):
    order_id: str
    kind: DocumentKind
    html: str


class BulkResultResponse(BaseModel):
    requested: int
    succeeded: int
    failed_count: int
    failed: list[BulkFailureResponse]
    batch_error: str | None = None
    full_success: bool
    message: str
    documents: list[RenderedDocumentResponse] = []

    @classmethod
    def from_domain(cls, result: BulkResult) -> "BulkResultResponse":
        return cls(
            requested=result.requested,
            succeeded=result.succeeded,
            failed_count=result.failed_count,
            failed=[BulkFailureResponse(order_id=f.order_id, error=f.error) for f in result.failed],
            batch_error=result.batch_error,
            full_success=result.is_full_success,
            message=result.summary(),
            documents=[
                RenderedDocumentResponse(order_id=d.order_id, kind=d.kind, html=d.html)
                for d in result.documents
            ],
        )


# ---------------------------------------------------------------------------
# Courier dispatch
# ---------------------------------------------------------------------------


class DispatchRequest(BaseModel):
    ids: list[str] = Field(min_length=1)
    provider_id: str


class DispatchResultResponse(BaseModel):
    order_id: str
    order_number: str
    success: bool
    tracking_id: str | None = None
    error: str | None = None


class DispatchReportResponse(BaseModel):
    provider_id: str
    succeeded: int
    failed: int
    message: str
    results: list[DispatchResultResponse]

    @classmethod
    def from_domain(cls, report: DispatchReport) -> "DispatchReportResponse":
        return cls(
            provider_id=report.provider_id,
            succeeded=report.succeeded,
            failed=report.failed,
            message=report.summary(),
            results=[
                DispatchResultResponse(
                    order_id=r.order_id,
                    order_number=r.order_number,
                    success=r.success,
                    tracking_id=r.tracking_id,
                    error=r.error,
                )
                for r in report.results
            ],
        )


class DeliveryProviderResponse(BaseModel):
    id: str
    name: str
    provider_type: str
