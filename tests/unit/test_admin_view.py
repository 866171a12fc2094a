"""Unit tests for AdminOrderView: querying, selection, mutations and live updates."""
import asyncio
from datetime import date

import pytest

from src.sf_common.enums import DocumentKind, OrderStatus
from src.sf_common.errors import EmptySelectionError, StoreQueryError
from src.sf_order.application.bulk import BulkOperationCoordinator
from src.sf_order.application.query_service import OrderQueryResult, OrderQueryService
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_order.application.view import AdminOrderView, OrderViewState
from src.sf_order.domain.models import OrderFilters
from src.sf_order.domain.operations import DeleteOrders, GenerateDocument, StatusChange


@pytest.fixture
def snapshots() -> list[list[str]]:
    return []


@pytest.fixture
def view(repo, session_factory, feed, renderer, notifier, clock, snapshots) -> AdminOrderView:
    machine = OrderStateMachine(repo=repo, session_factory=session_factory, clock=clock)

    async def on_snapshot(state: OrderViewState) -> None:
        snapshots.append([o.id for o in state.visible_orders()])

    return AdminOrderView(
        queries=OrderQueryService(repo=repo, session_factory=session_factory),
        state_machine=machine,
        bulk=BulkOperationCoordinator(
            state_machine=machine, repo=repo, session_factory=session_factory,
            renderer=renderer,
        ),
        feed=feed,
        notifier=notifier,
        on_snapshot=on_snapshot,
    )


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_activate_loads_and_subscribes(self, view, feed, snapshots) -> None:
        await view.activate()
        assert view.active
        assert len(feed.open_subscriptions) == 1
        assert snapshots[-1] == ["ord-2", "ord-1", "ord-0"]
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_deactivate_unsubscribes_and_resets(self, view, feed) -> None:
        await view.activate()
        await view.select(["ord-0"])
        await view.deactivate()
        assert feed.open_subscriptions == []
        assert view.state.orders == []
        assert view.state.selected_ids() == []

    @pytest.mark.asyncio
    async def test_works_without_realtime(self, view, feed) -> None:
        feed.fail_subscribe = True
        await view.activate()
        assert len(view.state.orders) == 3
        await view.deactivate()


class TestLiveUpdates:
    @pytest.mark.asyncio
    async def test_external_insert_appears_without_operator_action(
        self, repo, view, feed, order_factory
    ) -> None:
        await view.activate()
        repo.add(order_factory(id="ord-new", order_number="SF-2000",
                               created_at=repo.orders["ord-2"].created_at.replace(year=2027)))

        feed.emit("INSERT", "orders")
        await view.reconciliation.wait_idle()

        assert view.state.orders[0].id == "ord-new"
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_external_delete_disappears(self, repo, view, feed) -> None:
        await view.activate()
        del repo.orders["ord-1"]

        feed.emit("DELETE", "orders")
        await view.reconciliation.wait_idle()

        assert [o.id for o in view.state.orders] == ["ord-2", "ord-0"]
        await view.deactivate()


class TestRefresh:
    @pytest.mark.asyncio
    async def test_store_failure_shows_empty_list_and_notifies(
        self, repo, view, notifier
    ) -> None:
        await view.activate()
        repo.fail_queries = True
        await view.refresh()
        assert view.state.orders == []
        assert isinstance(view.state.last_error, StoreQueryError)
        assert notifier.errors[-1].startswith("Failed to load orders")
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_newest_query_wins(self, view, order_factory) -> None:
        pending: list[asyncio.Future[OrderQueryResult]] = []

        class SlowQueries:
            async def fetch(self, filters: OrderFilters) -> OrderQueryResult:
                fut: asyncio.Future[OrderQueryResult] = asyncio.get_running_loop().create_future()
                pending.append(fut)
                return await fut

        view._queries = SlowQueries()
        first = asyncio.create_task(view.refresh())
        second = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)

        pending[1].set_result(OrderQueryResult(orders=[order_factory(id="newer")]))
        await second
        pending[0].set_result(OrderQueryResult(orders=[order_factory(id="older")]))
        await first

        assert [o.id for o in view.state.orders] == ["newer"]


class TestFilters:
    @pytest.mark.asyncio
    async def test_status_filter_requeries_and_resubscribes(
        self, repo, view, feed, order_factory
    ) -> None:
        repo.add(order_factory(id="s-1", status="shipped"))
        await view.activate()

        await view.set_filters(status=OrderStatus.SHIPPED)

        assert [o.id for o in view.state.orders] == ["s-1"]
        assert len(feed.subscriptions) == 2
        assert len(feed.open_subscriptions) == 1
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_search_only_change_does_not_requery(self, repo, view, snapshots) -> None:
        await view.activate()
        calls = len(repo.list_calls)

        await view.set_filters(search="sf-1001")

        assert len(repo.list_calls) == calls
        assert snapshots[-1] == ["ord-1"]
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_clearing_search_after_refresh_restores_all_orders(
        self, view, snapshots
    ) -> None:
        await view.activate()
        await view.set_filters(search="sf-1001")
        await view.refresh()
        assert snapshots[-1] == ["ord-1"]
        assert len(view.state.orders) == 3

        await view.set_filters(search="")

        assert snapshots[-1] == ["ord-2", "ord-1", "ord-0"]
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_widening_search_after_live_update(self, view, feed, snapshots) -> None:
        await view.activate()
        await view.set_filters(search="SF-1002")
        feed.emit("UPDATE", "orders")
        await view.reconciliation.wait_idle()

        await view.set_filters(search="SF-100")

        assert snapshots[-1] == ["ord-2", "ord-1", "ord-0"]
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_dates_kept_unless_given(self, view) -> None:
        await view.set_filters(date_from=date(2026, 3, 1))
        await view.set_filters(status="all")
        assert view.state.filters.date_from == date(2026, 3, 1)
        await view.set_filters(date_from=None)
        assert view.state.filters.date_from is None


class TestSelection:
    @pytest.mark.asyncio
    async def test_select_and_deselect(self, view) -> None:
        await view.activate()
        await view.select(["ord-0", "ord-2"])
        await view.deselect(["ord-0"])
        assert view.state.selected_ids() == ["ord-2"]
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_select_all_uses_visible_orders(self, view) -> None:
        await view.activate()
        await view.set_filters(search="SF-1002")
        await view.select_all()
        assert view.state.selected_ids() == ["ord-2"]
        await view.deselect_all()
        assert view.state.selected_ids() == []
        await view.deactivate()


class TestSingleMutations:
    @pytest.mark.asyncio
    async def test_status_change_patches_and_notifies(self, repo, view, notifier) -> None:
        await view.activate()
        ok = await view.set_status("ord-0", "shipped")
        assert ok is True
        assert notifier.successes == ["Order status updated"]
        order = next(o for o in view.state.orders if o.id == "ord-0")
        assert order.status == "shipped"
        assert order.shipped_at is not None
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_failure_notifies_without_raising(self, view, notifier) -> None:
        await view.activate()
        ok = await view.set_tracking_number("ghost", "TRK-1")
        assert ok is False
        assert notifier.errors[-1].startswith("Failed to update tracking number")
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_notes(self, repo, view) -> None:
        await view.activate()
        await view.set_notes("ord-1", "fragile")
        assert repo.orders["ord-1"].notes == "fragile"
        await view.deactivate()


class TestBulkFromView:
    @pytest.mark.asyncio
    async def test_requires_selection(self, view) -> None:
        await view.activate()
        with pytest.raises(EmptySelectionError):
            await view.bulk_apply(StatusChange(OrderStatus.CONFIRMED))
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_clears_selection_and_reports_summary(self, repo, view, notifier) -> None:
        await view.activate()
        await view.select(["ord-0", "ord-1"])
        result = await view.bulk_apply(StatusChange(OrderStatus.CANCELLED))
        assert result.succeeded == 2
        assert view.state.selected_ids() == []
        assert notifier.successes[-1] == "Bulk status change to cancelled: 2 order(s) succeeded"
        assert {o.status for o in view.state.orders if o.id in ("ord-0", "ord-1")} == {
            "cancelled"
        }
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_delete_failure_reported_as_error(self, repo, view, notifier) -> None:
        await view.activate()
        repo.fail_delete_items = True
        await view.select(["ord-0"])
        result = await view.bulk_apply(DeleteOrders())
        assert result.batch_error is not None
        assert notifier.errors[-1].startswith("Bulk delete failed")
        assert view.state.selected_ids() == []
        assert len(view.state.orders) == 3
        await view.deactivate()

    @pytest.mark.asyncio
    async def test_partial_document_failure(self, view, renderer, notifier) -> None:
        await view.activate()
        renderer.fail_ids.add("ord-1")
        await view.select(["ord-0", "ord-1"])
        result = await view.bulk_apply(GenerateDocument(DocumentKind.INVOICE))
        assert [d.order_id for d in result.documents] == ["ord-0"]
        assert "1 of 2 succeeded, 1 failed" in notifier.errors[-1]
        await view.deactivate()
