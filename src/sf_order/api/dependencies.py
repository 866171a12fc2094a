"""Process-wide order services, exposed as FastAPI dependencies."""
from src.sf_delivery.application.service import DispatchService
from src.sf_order.application.bulk import BulkOperationCoordinator
from src.sf_order.application.query_service import OrderQueryService
from src.sf_order.application.state_machine import OrderStateMachine
from src.sf_realtime.domain.events import ChangeFeedProtocol
from src.sf_realtime.infrastructure.pg_feed import PostgresChangeFeed

_queries = OrderQueryService()
_state_machine = OrderStateMachine()
_bulk = BulkOperationCoordinator(state_machine=_state_machine)
_dispatch = DispatchService(state_machine=_state_machine)
_feed = PostgresChangeFeed()


def get_query_service() -> OrderQueryService:
    return _queries


def get_state_machine() -> OrderStateMachine:
    return _state_machine


def get_bulk_coordinator() -> BulkOperationCoordinator:
    return _bulk


def get_dispatch_service() -> DispatchService:
    return _dispatch


def get_change_feed() -> ChangeFeedProtocol:
    return _feed
