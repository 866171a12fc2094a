"""Bulk operations over a selection of orders, and their aggregated outcome."""
from dataclasses import dataclass, field

from src.sf_common.enums import DocumentKind, OrderStatus


@dataclass(frozen=True)
class StatusChange:
    status: OrderStatus


@dataclass(frozen=True)
class DeleteOrders:
    pass


@dataclass(frozen=True)
class GenerateDocument:
    kind: DocumentKind


BulkOperation = StatusChange | DeleteOrders | GenerateDocument


def describe(op: BulkOperation) -> str:
    if isinstance(op, StatusChange):
        return f"status change to {OrderStatus(op.status).value}"
    if isinstance(op, DeleteOrders):
        return "delete"
    return f"{DocumentKind(op.kind).value.replace('_', ' ')} generation"


@dataclass(frozen=True)
class RenderedDocument:
    order_id: str
    kind: DocumentKind
    html: str


@dataclass(frozen=True)
class BulkFailure:
    order_id: str
    error: str


@dataclass
class BulkResult:
    """Outcome of one bulk operation.

    ``batch_error`` is set when the whole batch failed as a unit (line-item
    phase of a delete); per-id ``failed`` entries are empty in that case.
    """
    operation: BulkOperation
    requested: int
    succeeded: int = 0
    failed: list[BulkFailure] = field(default_factory=list)
    documents: list[RenderedDocument] = field(default_factory=list)
    batch_error: str | None = None

    @property
    def failed_count(self) -> int:
        if self.batch_error is not None:
            return self.requested - self.succeeded
        return len(self.failed)

    @property
    def is_full_success(self) -> bool:
        return self.batch_error is None and not self.failed

    def record_success(self) -> None:
        self.succeeded += 1

    def record_failure(self, order_id: str, error: str) -> None:
        self.failed.append(BulkFailure(order_id=order_id, error=error))

    def summary(self) -> str:
        label = describe(self.operation)
        if self.batch_error is not None:
            return f"Bulk {label} failed: {self.batch_error}"
        if self.is_full_success:
            return f"Bulk {label}: {self.succeeded} order(s) succeeded"
        return (
            f"Bulk {label}: {self.succeeded} of {self.requested} succeeded, "
            f"{self.failed_count} failed"
        )
