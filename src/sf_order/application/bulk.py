"""BulkOperationCoordinator — applies one operation across a selection of orders.

Policy: best effort, report at the end. Ids are processed sequentially in
selection order; a failure on one id is recorded and the loop moves on.
Nothing is retried.

Deletion is the exception: line items for the whole selection are deleted
first and, if that fails, the order rows are never touched.
"""
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import assert_never

from sqlalchemy.exc import SQLAlchemyError

from src.sf_common.database import SessionFactory, async_session_factory, session_scope
from src.sf_common.errors import AppError, LineItemDeleteError, OrderNotFoundError
from src.sf_documents.domain.renderer import DocumentRendererProtocol
from src.sf_documents.infrastructure.http_renderer import get_document_renderer
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_order.domain.operations import (
    BulkOperation,
    BulkResult,
    DeleteOrders,
    GenerateDocument,
    RenderedDocument,
    StatusChange,
)
from src.sf_order.domain.repository import OrderRepositoryProtocol
from src.sf_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)

DocumentHandler = Callable[[RenderedDocument], Awaitable[None]]


def _error_text(exc: Exception) -> str:
    return exc.message if isinstance(exc, AppError) else str(exc) or type(exc).__name__


def _dedupe(ids: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class BulkOperationCoordinator:
    def __init__(
        self,
        state_machine: OrderStateMachine | None = None,
        repo: OrderRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
        renderer: DocumentRendererProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._session_factory = session_factory or async_session_factory
        self._state_machine = state_machine or OrderStateMachine(
            repo=self._repo, session_factory=self._session_factory
        )
        self._renderer = renderer

    @property
    def renderer(self) -> DocumentRendererProtocol:
        if self._renderer is None:
            self._renderer = get_document_renderer()
        return self._renderer

    async def bulk_apply(
        self,
        ids: Sequence[str],
        op: BulkOperation,
        on_document: DocumentHandler | None = None,
    ) -> BulkResult:
        order_ids = _dedupe(ids)
        result = BulkResult(operation=op, requested=len(order_ids))
        if not order_ids:
            return result

        if isinstance(op, StatusChange):
            await self._change_status(order_ids, op, result)
        elif isinstance(op, DeleteOrders):
            await self._delete(order_ids, result)
        elif isinstance(op, GenerateDocument):
            await self._generate_documents(order_ids, op, result, on_document)
        else:
            assert_never(op)

        logger.info(
            "Bulk %s finished: requested=%d succeeded=%d failed=%d",
            type(op).__name__, result.requested, result.succeeded, result.failed_count,
        )
        return result

    async def _change_status(
        self, order_ids: list[str], op: StatusChange, result: BulkResult
    ) -> None:
        for order_id in order_ids:
            try:
                await self._state_machine.set_status(order_id, op.status)
            except Exception as exc:
                logger.warning("Bulk status change failed for %s: %s", order_id, exc)
                result.record_failure(order_id, _error_text(exc))
            else:
                result.record_success()

    async def _delete(self, order_ids: list[str], result: BulkResult) -> None:
        # Phase 1: order_items reference orders, so they must go first.
        try:
            async with session_scope(self._session_factory) as db:
                removed = await self._repo.delete_items_for_orders(order_ids, db)
        except (SQLAlchemyError, OSError, AppError) as exc:
            err = LineItemDeleteError(_error_text(exc))
            logger.error("Bulk delete aborted before deleting orders: %s", err.message)
            result.batch_error = err.message
            return
        logger.debug("Deleted %d line items for %d orders", removed, len(order_ids))

        # Phase 2
        try:
            async with session_scope(self._session_factory) as db:
                deleted = set(await self._repo.delete_orders(order_ids, db))
        except (SQLAlchemyError, OSError, AppError) as exc:
            logger.error("Bulk delete of orders failed after line items were removed: %s", exc)
            result.batch_error = f"Failed to delete orders: {_error_text(exc)}"
            return

        for order_id in order_ids:
            if order_id in deleted:
                result.record_success()
            else:
                result.record_failure(order_id, OrderNotFoundError(order_id).message)

    async def _generate_documents(
        self,
        order_ids: list[str],
        op: GenerateDocument,
        result: BulkResult,
        on_document: DocumentHandler | None,
    ) -> None:
        for order_id in order_ids:
            try:
                html = await self.renderer.render(op.kind, order_id)
                document = RenderedDocument(order_id=order_id, kind=op.kind, html=html)
                if on_document is not None:
                    await on_document(document)
            except Exception as exc:
                logger.warning("Skipping %s for order %s: %s", op.kind, order_id, exc)
                result.record_failure(order_id, _error_text(exc))
            else:
                result.documents.append(document)
                result.record_success()
