"""Unified error codes and custom exceptions.

Error code ranges:
  4xxx: Order
  6xxx: Order store
  7xxx: Document rendering
  8xxx: Delivery / courier
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 4xxx: Order ---

class InvalidOrderStatusError(AppError):
    def __init__(self, status: str) -> None:
        super().__init__(4001, f"Invalid order status: {status}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class EmptySelectionError(AppError):
    def __init__(self) -> None:
        super().__init__(4007, "No orders selected", 422)


# --- 6xxx: Order store ---

class StoreQueryError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Failed to load orders: {detail}", 503)


class StoreWriteError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6002, f"Failed to update order: {detail}", 503)


class LineItemDeleteError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            6003,
            f"Failed to delete order items, no orders were deleted: {detail}",
            503,
        )


# --- 7xxx: Document rendering ---

class DocumentRenderError(AppError):
    def __init__(self, order_id: str, detail: str) -> None:
        super().__init__(7001, f"Document generation failed for {order_id}: {detail}", 502)


# --- 8xxx: Delivery ---

class DeliveryProviderNotFoundError(AppError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(8001, f"Active delivery provider not found: {provider_id}", 404)


class DispatchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(8002, f"Dispatch failed: {detail}", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
