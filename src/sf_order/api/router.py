# src/sf_order/api/router.py
"""Admin order REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from src.sf_common.response import ApiResponse, success_response
from src.sf_delivery.application.service import DispatchService
from src.sf_order.api.dependencies import (
    get_bulk_coordinator,
    get_dispatch_service,
    get_query_service,
    get_state_machine,
)
from src.sf_order.application.bulk import BulkOperationCoordinator
from src.sf_order.application.query_service import OrderQueryService
from src.sf_order.application.schemas import (
    BulkRequest,
    BulkResultResponse,
    DeliveryPartnerResponse,
    DeliveryPartnerUpdateRequest,
    DeliveryProviderResponse,
    DispatchReportResponse,
    DispatchRequest,
    NotesUpdateRequest,
    OrderDetailResponse,
    OrderFilterParams,
    OrderListResponse,
    OrderResponse,
    StatusUpdateRequest,
    TrackingNumberUpdateRequest,
    operation_to_domain,
)
from src.sf_order.application.state_machine import OrderStateMachine

router = APIRouter(prefix="/admin", tags=["admin-orders"])

Queries = Annotated[OrderQueryService, Depends(get_query_service)]
Machine = Annotated[OrderStateMachine, Depends(get_state_machine)]


@router.get("/orders")
async def list_orders(
    params: Annotated[OrderFilterParams, Depends()],
    queries: Queries,
    response: Response,
) -> ApiResponse:
    result = await queries.fetch(params.to_domain())
    orders = result.matching()
    data = OrderListResponse(
        items=[OrderResponse.from_domain(o) for o in orders],
        total=len(orders),
        error=result.error.message if result.error else None,
    ).model_dump(mode="json")
    if result.error is not None:
        # Empty list plus the error, so the console can render a stale/empty state.
        response.status_code = result.error.http_status
        return ApiResponse(code=result.error.code, message=result.error.message, data=data)
    return success_response(data)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, queries: Queries) -> ApiResponse:
    detail = await queries.get_order_detail(order_id)
    return success_response(OrderDetailResponse.from_domain(detail).model_dump(mode="json"))


@router.patch("/orders/{order_id}/status")
async def set_status(order_id: str, body: StatusUpdateRequest, machine: Machine) -> ApiResponse:
    fields = await machine.set_status(order_id, body.status)
    return success_response(fields, message="Order status updated")


@router.patch("/orders/{order_id}/delivery-partner")
async def set_delivery_partner(
    order_id: str, body: DeliveryPartnerUpdateRequest, machine: Machine
) -> ApiResponse:
    fields = await machine.set_delivery_partner(order_id, body.delivery_partner_id)
    return success_response(fields, message="Delivery partner updated")


@router.patch("/orders/{order_id}/tracking-number")
async def set_tracking_number(
    order_id: str, body: TrackingNumberUpdateRequest, machine: Machine
) -> ApiResponse:
    fields = await machine.set_tracking_number(order_id, body.tracking_number)
    return success_response(fields, message="Tracking number updated")


@router.patch("/orders/{order_id}/notes")
async def set_notes(order_id: str, body: NotesUpdateRequest, machine: Machine) -> ApiResponse:
    fields = await machine.set_notes(order_id, body.notes)
    return success_response(fields, message="Notes updated")


@router.post("/orders/bulk")
async def bulk_apply(
    body: BulkRequest,
    bulk: Annotated[BulkOperationCoordinator, Depends(get_bulk_coordinator)],
) -> ApiResponse:
    result = await bulk.bulk_apply(body.ids, operation_to_domain(body.operation))
    data = BulkResultResponse.from_domain(result)
    return success_response(data.model_dump(mode="json"), message=data.message)


@router.post("/orders/dispatch")
async def dispatch_orders(
    body: DispatchRequest,
    dispatch: Annotated[DispatchService, Depends(get_dispatch_service)],
) -> ApiResponse:
    report = await dispatch.dispatch(body.ids, body.provider_id)
    data = DispatchReportResponse.from_domain(report)
    return success_response(data.model_dump(mode="json"), message=data.message)


@router.get("/delivery-partners")
async def list_delivery_partners(queries: Queries) -> ApiResponse:
    partners = await queries.list_delivery_partners()
    return success_response(
        [DeliveryPartnerResponse(id=p.id, name=p.name).model_dump() for p in partners]
    )


@router.get("/delivery-providers")
async def list_delivery_providers(
    dispatch: Annotated[DispatchService, Depends(get_dispatch_service)],
) -> ApiResponse:
    providers = await dispatch.list_providers()
    return success_response([
        DeliveryProviderResponse(
            id=p.id, name=p.name, provider_type=p.provider_type
        ).model_dump()
        for p in providers
    ])
