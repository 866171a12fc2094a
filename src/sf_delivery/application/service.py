"""DispatchService — hands selected orders to a courier and marks them shipped.

Same partial-failure policy as the bulk coordinator: each order succeeds or
fails on its own and the report is aggregated at the end. Steadfast accepts
a whole batch in one call; every other courier is called once per order.
"""
import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from src.sf_common.database import SessionFactory, async_session_factory
from src.sf_common.enums import DeliveryProviderType
from src.sf_common.errors import (
    AppError,
    DeliveryProviderNotFoundError,
    EmptySelectionError,
    StoreQueryError,
)
from src.sf_delivery.domain.gateway import (
    DeliveryGatewayProtocol,
    DeliveryProviderRepositoryProtocol,
)
from src.sf_delivery.domain.models import DeliveryProvider, DispatchReport, DispatchResult
from src.sf_delivery.domain.payloads import (
    build_order_payload,
    create_action,
    extract_tracking_id,
    steadfast_bulk_entry,
)
from src.sf_delivery.infrastructure.client import get_delivery_client
from src.sf_delivery.infrastructure.persistence import DeliveryProviderRepository
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_order.domain.models import Order
from src.sf_order.domain.repository import OrderRepositoryProtocol
from src.sf_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


def _failure(order: Order, error: str) -> DispatchResult:
    return DispatchResult(
        order_id=order.id, order_number=order.order_number, success=False, error=error
    )


class DispatchService:
    def __init__(
        self,
        state_machine: OrderStateMachine | None = None,
        gateway: DeliveryGatewayProtocol | None = None,
        providers: DeliveryProviderRepositoryProtocol | None = None,
        orders: OrderRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._providers: DeliveryProviderRepositoryProtocol = (
            providers or DeliveryProviderRepository()
        )
        self._state_machine = state_machine or OrderStateMachine(
            repo=self._orders, session_factory=self._session_factory
        )
        self._gateway = gateway

    @property
    def gateway(self) -> DeliveryGatewayProtocol:
        if self._gateway is None:
            self._gateway = get_delivery_client()
        return self._gateway

    async def list_providers(self) -> list[DeliveryProvider]:
        try:
            async with self._session_factory() as db:
                return await self._providers.list_active(db)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error fetching delivery providers")
            raise StoreQueryError(str(exc)) from exc

    async def dispatch(self, order_ids: Sequence[str], provider_id: str) -> DispatchReport:
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            raise EmptySelectionError()
        provider, orders, missing = await self._load(ids, provider_id)

        report = DispatchReport(provider_id=provider.id)
        report.results.extend(
            DispatchResult(order_id=i, order_number="", success=False, error="Order not found")
            for i in missing
        )
        if (
            provider.provider_type == DeliveryProviderType.STEADFAST.value
            and len(orders) > 1
        ):
            report.results.extend(await self._dispatch_steadfast_bulk(provider, orders))
        else:
            for order in orders:
                report.results.append(await self._dispatch_one(provider, order))

        logger.info("Dispatch via %s: %s", provider.name, report.summary())
        return report

    async def _load(
        self, ids: list[str], provider_id: str
    ) -> tuple[DeliveryProvider, list[Order], list[str]]:
        try:
            async with self._session_factory() as db:
                provider = await self._providers.get_active(provider_id, db)
                if provider is None:
                    raise DeliveryProviderNotFoundError(provider_id)
                orders: list[Order] = []
                missing: list[str] = []
                for order_id in ids:
                    order = await self._orders.get_by_id(order_id, db)
                    if order is None:
                        missing.append(order_id)
                    else:
                        orders.append(order)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Error loading orders for dispatch")
            raise StoreQueryError(str(exc)) from exc
        return provider, orders, missing

    async def _dispatch_one(self, provider: DeliveryProvider, order: Order) -> DispatchResult:
        if order.address is None:
            return _failure(order, "No address found")
        payload = build_order_payload(order, provider.provider_type)
        if payload is None:
            return _failure(order, "Unsupported provider type")
        body: dict[str, Any] = {
            "provider_type": provider.provider_type,
            "action": create_action(provider.provider_type),
            "provider_id": provider.id,
            **payload,
        }
        try:
            data = await self.gateway.invoke(body)
            tracking_id = extract_tracking_id(data)
            await self._state_machine.mark_shipped(order.id, tracking_id)
        except AppError as exc:
            logger.warning("Dispatch of %s failed: %s", order.order_number, exc.message)
            return _failure(order, exc.message)
        return DispatchResult(
            order_id=order.id,
            order_number=order.order_number,
            success=True,
            tracking_id=tracking_id,
        )

    async def _dispatch_steadfast_bulk(
        self, provider: DeliveryProvider, orders: list[Order]
    ) -> list[DispatchResult]:
        results: list[DispatchResult] = []
        sendable: list[tuple[Order, dict[str, Any]]] = []
        for order in orders:
            payload = build_order_payload(order, provider.provider_type)
            if payload is None:
                results.append(_failure(order, "No address found"))
            else:
                sendable.append((order, steadfast_bulk_entry(payload)))
        if not sendable:
            return results

        try:
            data = await self.gateway.invoke({
                "provider_type": provider.provider_type,
                "action": "bulk_create",
                "provider_id": provider.id,
                "orders": [entry for _, entry in sendable],
            })
        except AppError as exc:
            logger.warning("Steadfast bulk dispatch failed: %s", exc.message)
            return results + [_failure(order, exc.message) for order, _ in sendable]

        per_invoice = _bulk_tracking_ids(data)
        fallback = extract_tracking_id(data)
        for order, _ in sendable:
            tracking_id = per_invoice.get(order.order_number, fallback)
            try:
                await self._state_machine.mark_shipped(order.id, tracking_id)
            except AppError as exc:
                results.append(_failure(order, exc.message))
                continue
            results.append(DispatchResult(
                order_id=order.id,
                order_number=order.order_number,
                success=True,
                tracking_id=tracking_id,
            ))
        return results


def _bulk_tracking_ids(data: dict[str, Any]) -> dict[str, str]:
    """Map invoice (order number) → consignment id from a bulk_create response."""
    entries = data.get("data")
    if not isinstance(entries, list):
        return {}
    mapping: dict[str, str] = {}
    for entry in entries:
        if isinstance(entry, dict) and entry.get("invoice"):
            tracking_id = extract_tracking_id(entry)
            if tracking_id:
                mapping[str(entry["invoice"])] = tracking_id
    return mapping
