"""Live admin order screen over WebSocket.

Each connection owns one ``AdminOrderView``: it subscribes to the change feed
on connect and unsubscribes on disconnect. The client sends action frames;
the server pushes ``snapshot``, ``notice`` and ``document`` frames.
"""
import logging
from datetime import date
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from src.sf_common.enums import OrderStatus
from src.sf_common.errors import AppError
from src.sf_order.api.dependencies import (
    get_bulk_coordinator,
    get_change_feed,
    get_query_service,
    get_state_machine,
)
from src.sf_order.application.bulk import BulkOperationCoordinator
from src.sf_order.application.query_service import OrderQueryService
from src.sf_order.application.schemas import (
    BulkOperationSpec,
    BulkResultResponse,
    OrderResponse,
    operation_to_domain,
)
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_order.application.view import AdminOrderView, OrderViewState
from src.sf_order.domain.operations import RenderedDocument
from src.sf_realtime.domain.events import ChangeFeedProtocol

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin-orders"])


# ---------------------------------------------------------------------------
# Client → server frames
# ---------------------------------------------------------------------------


class SetFiltersAction(BaseModel):
    action: Literal["set_filters"]
    status: OrderStatus | Literal["all"] | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None


class RefreshAction(BaseModel):
    action: Literal["refresh"]


class SelectAction(BaseModel):
    action: Literal["select", "deselect"]
    ids: list[str]


class SelectAllAction(BaseModel):
    action: Literal["select_all", "deselect_all"]


class SetStatusAction(BaseModel):
    action: Literal["set_status"]
    order_id: str
    status: OrderStatus


class SetDeliveryPartnerAction(BaseModel):
    action: Literal["set_delivery_partner"]
    order_id: str
    delivery_partner_id: str | None = None


class SetTrackingNumberAction(BaseModel):
    action: Literal["set_tracking_number"]
    order_id: str
    tracking_number: str | None = None


class SetNotesAction(BaseModel):
    action: Literal["set_notes"]
    order_id: str
    notes: str | None = None


class BulkAction(BaseModel):
    action: Literal["bulk"]
    operation: BulkOperationSpec


LiveAction = Annotated[
    SetFiltersAction
    | RefreshAction
    | SelectAction
    | SelectAllAction
    | SetStatusAction
    | SetDeliveryPartnerAction
    | SetTrackingNumberAction
    | SetNotesAction
    | BulkAction,
    Field(discriminator="action"),
]

_action_adapter: TypeAdapter[Any] = TypeAdapter(LiveAction)


# ---------------------------------------------------------------------------
# Server → client frames
# ---------------------------------------------------------------------------


def snapshot_frame(state: OrderViewState) -> dict[str, Any]:
    filters = state.filters
    return {
        "type": "snapshot",
        "filters": {
            "status": filters.status.value if isinstance(filters.status, OrderStatus)
            else filters.status,
            "date_from": filters.date_from.isoformat() if filters.date_from else None,
            "date_to": filters.date_to.isoformat() if filters.date_to else None,
            "search": filters.search,
        },
        "orders": [
            OrderResponse.from_domain(o).model_dump(mode="json") for o in state.visible_orders()
        ],
        "selection": state.selected_ids(),
        "error": state.last_error.message if state.last_error else None,
        "loaded_at": state.loaded_at.isoformat() if state.loaded_at else None,
    }


class WebSocketNotifier:
    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws

    async def success(self, message: str) -> None:
        await self._ws.send_json({"type": "notice", "level": "success", "message": message})

    async def error(self, message: str) -> None:
        await self._ws.send_json({"type": "notice", "level": "error", "message": message})


async def _handle(view: AdminOrderView, ws: WebSocket, action: Any) -> None:
    if isinstance(action, SetFiltersAction):
        fields = action.model_fields_set
        await view.set_filters(
            status=action.status,
            date_from=action.date_from if "date_from" in fields else ...,
            date_to=action.date_to if "date_to" in fields else ...,
            search=action.search,
        )
    elif isinstance(action, RefreshAction):
        await view.refresh()
    elif isinstance(action, SelectAction):
        if action.action == "select":
            await view.select(action.ids)
        else:
            await view.deselect(action.ids)
    elif isinstance(action, SelectAllAction):
        if action.action == "select_all":
            await view.select_all()
        else:
            await view.deselect_all()
    elif isinstance(action, SetStatusAction):
        await view.set_status(action.order_id, action.status)
    elif isinstance(action, SetDeliveryPartnerAction):
        await view.set_delivery_partner(action.order_id, action.delivery_partner_id)
    elif isinstance(action, SetTrackingNumberAction):
        await view.set_tracking_number(action.order_id, action.tracking_number)
    elif isinstance(action, SetNotesAction):
        await view.set_notes(action.order_id, action.notes)
    elif isinstance(action, BulkAction):
        async def present(doc: RenderedDocument) -> None:
            await ws.send_json({
                "type": "document",
                "order_id": doc.order_id,
                "kind": doc.kind.value,
                "html": doc.html,
            })

        result = await view.bulk_apply(operation_to_domain(action.operation), on_document=present)
        await ws.send_json({
            "type": "bulk_result",
            "result": BulkResultResponse.from_domain(result).model_dump(
                mode="json", exclude={"documents"}
            ),
        })


@router.websocket("/orders/live")
async def live_orders(
    ws: WebSocket,
    queries: Annotated[OrderQueryService, Depends(get_query_service)],
    machine: Annotated[OrderStateMachine, Depends(get_state_machine)],
    bulk: Annotated[BulkOperationCoordinator, Depends(get_bulk_coordinator)],
    feed: Annotated[ChangeFeedProtocol, Depends(get_change_feed)],
) -> None:
    await ws.accept()

    async def push_snapshot(state: OrderViewState) -> None:
        await ws.send_json(snapshot_frame(state))

    view = AdminOrderView(
        queries=queries,
        state_machine=machine,
        bulk=bulk,
        feed=feed,
        notifier=WebSocketNotifier(ws),
        on_snapshot=push_snapshot,
    )
    await view.activate()
    try:
        while True:
            raw = await ws.receive_text()
            try:
                action = _action_adapter.validate_json(raw)
            except ValidationError as exc:
                await ws.send_json({
                    "type": "notice", "level": "error",
                    "message": f"Invalid action: {exc.errors()[0]['msg']}",
                })
                continue
            try:
                await _handle(view, ws, action)
            except AppError as exc:
                await ws.send_json({"type": "notice", "level": "error", "message": exc.message})
    except WebSocketDisconnect:
        logger.info("Live order view disconnected")
    finally:
        await view.deactivate()
