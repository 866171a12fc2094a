"""AdminOrderView — one operator's live order screen.

``OrderViewState`` is the single explicit value holding the view's filters,
selection, loaded orders and last error. ``AdminOrderView`` mutates it in
response to operator actions and realtime notifications. The loaded order
list is a disposable cache: it is replaced wholesale by every query, and the
only local patching is the optimistic update after a single-order mutation,
which the follow-up query supersedes.
"""
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.sf_common.datetime_utils import utc_now
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import AppError, EmptySelectionError
from src.sf_common.notify import LoggingNotifier, Notifier
from src.sf_order.application.bulk import BulkOperationCoordinator, DocumentHandler
from src.sf_order.application.query_service import OrderQueryService
from src.sf_order.application.reconciliation import ReconciliationLoop
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_order.domain.models import Order, OrderFilters
from src.sf_order.domain.operations import BulkOperation, BulkResult
from src.sf_order.domain.search import filter_orders
from src.sf_realtime.domain.events import ChangeFeedProtocol

logger = logging.getLogger(__name__)

SnapshotListener = Callable[["OrderViewState"], Awaitable[None]]


@dataclass
class OrderViewState:
    filters: OrderFilters = field(default_factory=OrderFilters)
    # store rows of the last query; search is applied by visible_orders()
    orders: list[Order] = field(default_factory=list)
    # dict keys keep selection order; values unused
    selection: dict[str, None] = field(default_factory=dict)
    loading: bool = False
    last_error: AppError | None = None
    loaded_at: datetime | None = None

    def visible_orders(self) -> list[Order]:
        return filter_orders(self.orders, self.filters.search)

    def selected_ids(self) -> list[str]:
        return list(self.selection)

    def select(self, ids: Iterable[str]) -> None:
        for order_id in ids:
            self.selection[order_id] = None

    def deselect(self, ids: Iterable[str]) -> None:
        for order_id in ids:
            self.selection.pop(order_id, None)

    def select_all(self) -> None:
        self.select(o.id for o in self.visible_orders())

    def clear_selection(self) -> None:
        self.selection.clear()

    def patch_order(self, order_id: str, fields: dict[str, Any]) -> None:
        for i, order in enumerate(self.orders):
            if order.id == order_id:
                self.orders[i] = dataclasses.replace(order, **fields)
                return

    def reset(self) -> None:
        self.orders = []
        self.selection.clear()
        self.loading = False
        self.last_error = None
        self.loaded_at = None


class AdminOrderView:
    def __init__(
        self,
        queries: OrderQueryService,
        state_machine: OrderStateMachine,
        bulk: BulkOperationCoordinator,
        feed: ChangeFeedProtocol,
        notifier: Notifier | None = None,
        on_snapshot: SnapshotListener | None = None,
        filters: OrderFilters | None = None,
    ) -> None:
        self.state = OrderViewState(filters=filters or OrderFilters())
        self._queries = queries
        self._state_machine = state_machine
        self._bulk = bulk
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._on_snapshot = on_snapshot
        self.reconciliation = ReconciliationLoop(feed, self.refresh)
        self._query_seq = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    # -- lifecycle ---------------------------------------------------------

    async def activate(self) -> None:
        if self._active:
            return
        self._active = True
        await self.reconciliation.start()
        await self.refresh()

    async def deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        await self.reconciliation.stop()
        self.state.reset()

    # -- querying ----------------------------------------------------------

    async def refresh(self) -> None:
        """Re-run the query with the last-used filters; newest query wins."""
        self._query_seq += 1
        seq = self._query_seq
        self.state.loading = True
        result = await self._queries.fetch(self.state.filters)
        if seq != self._query_seq:
            logger.debug("Discarding stale order query #%d", seq)
            return
        self.state.loading = False
        self.state.orders = result.orders
        self.state.last_error = result.error
        self.state.loaded_at = utc_now()
        if result.error is not None:
            await self._notifier.error(result.error.message)
        await self._publish()

    async def set_filters(
        self,
        status: OrderStatus | str | None = None,
        date_from: Any = ...,
        date_to: Any = ...,
        search: str | None = None,
    ) -> None:
        """Change filters. ``...`` leaves a date bound unchanged; ``None`` clears it."""
        current = self.state.filters
        updated = OrderFilters(
            status=current.status if status is None else (
                status if status == "all" else OrderStatus(status)
            ),
            date_from=current.date_from if date_from is ... else date_from,
            date_to=current.date_to if date_to is ... else date_to,
            search=current.search if search is None else search,
        )
        self.state.filters = updated
        if updated.same_store_query(current):
            await self._publish()
            return
        if self._active:
            await self.reconciliation.restart()
        await self.refresh()

    # -- single-order mutations ---------------------------------------------

    async def set_status(self, order_id: str, new_status: OrderStatus | str) -> bool:
        return await self._mutate(
            order_id,
            self._state_machine.set_status(order_id, new_status),
            "Order status updated",
            "Failed to update status",
        )

    async def set_delivery_partner(self, order_id: str, partner_id: str | None) -> bool:
        return await self._mutate(
            order_id,
            self._state_machine.set_delivery_partner(order_id, partner_id),
            "Delivery partner updated",
            "Failed to update delivery partner",
        )

    async def set_tracking_number(self, order_id: str, tracking_number: str | None) -> bool:
        return await self._mutate(
            order_id,
            self._state_machine.set_tracking_number(order_id, tracking_number),
            "Tracking number updated",
            "Failed to update tracking number",
        )

    async def set_notes(self, order_id: str, notes: str | None) -> bool:
        return await self._mutate(
            order_id,
            self._state_machine.set_notes(order_id, notes),
            "Notes updated",
            "Failed to update notes",
        )

    async def _mutate(
        self,
        order_id: str,
        write: Awaitable[dict[str, Any]],
        ok_message: str,
        fail_message: str,
    ) -> bool:
        try:
            fields = await write
        except AppError as exc:
            # The optimistic patch is not rolled back; the next query corrects it.
            await self._notifier.error(f"{fail_message}: {exc.message}")
            return False
        self.state.patch_order(order_id, fields)
        await self._notifier.success(ok_message)
        await self.refresh()
        return True

    # -- bulk ----------------------------------------------------------------

    async def bulk_apply(
        self, op: BulkOperation, on_document: DocumentHandler | None = None
    ) -> BulkResult:
        ids = self.state.selected_ids()
        if not ids:
            raise EmptySelectionError()
        try:
            result = await self._bulk.bulk_apply(ids, op, on_document=on_document)
        finally:
            self.state.clear_selection()

        if result.is_full_success:
            await self._notifier.success(result.summary())
        else:
            await self._notifier.error(result.summary())
        if result.succeeded > 0:
            await self.refresh()
        else:
            await self._publish()
        return result

    # -- selection -------------------------------------------------------------

    async def select(self, ids: Iterable[str]) -> None:
        self.state.select(ids)
        await self._publish()

    async def deselect(self, ids: Iterable[str]) -> None:
        self.state.deselect(ids)
        await self._publish()

    async def select_all(self) -> None:
        self.state.select_all()
        await self._publish()

    async def deselect_all(self) -> None:
        self.state.clear_selection()
        await self._publish()

    async def _publish(self) -> None:
        if self._on_snapshot is not None:
            await self._on_snapshot(self.state)
