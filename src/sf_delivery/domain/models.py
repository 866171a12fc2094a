"""Courier dispatch domain model."""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DeliveryProvider:
    id: str
    name: str
    provider_type: str  # DeliveryProviderType value
    is_active: bool = True


@dataclass(frozen=True)
class DispatchResult:
    order_id: str
    order_number: str
    success: bool
    tracking_id: str | None = None
    error: str | None = None


@dataclass
class DispatchReport:
    provider_id: str
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    def summary(self) -> str:
        total = len(self.results)
        if self.failed == 0:
            return f"{self.succeeded}/{total} orders dispatched successfully"
        return f"{self.succeeded}/{total} orders dispatched, {self.failed} failed to dispatch"
