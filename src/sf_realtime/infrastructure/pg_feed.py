"""PostgresChangeFeed — LISTEN/NOTIFY subscription over a dedicated asyncpg connection.

The ``fn_notify_change`` trigger (alembic 003) publishes one JSON payload per
row change on ``orders`` and ``order_items``. Each subscription owns its own
connection so closing it never disturbs the SQLAlchemy pool. Reconnects are
left to the caller; a dropped connection simply stops delivering events.
"""
import logging
from collections.abc import Collection
from typing import Any

import asyncpg
from sqlalchemy.engine import make_url

from config.settings import settings
from src.sf_realtime.domain.events import ChangeEvent, ChangeListener

logger = logging.getLogger(__name__)


def asyncpg_dsn(database_url: str) -> str:
    """Strip the SQLAlchemy driver suffix: postgresql+asyncpg:// → postgresql://."""
    url = make_url(database_url).set(drivername="postgresql")
    return url.render_as_string(hide_password=False)


class PostgresSubscription:
    def __init__(
        self,
        conn: Any,
        channel: str,
        tables: Collection[str],
        listener: ChangeListener,
    ) -> None:
        self._conn = conn
        self._channel = channel
        self._tables = frozenset(tables)
        self._listener = listener
        self._closed = False

    def _on_notify(self, _conn: Any, _pid: int, _channel: str, payload: str) -> None:
        try:
            event = ChangeEvent.from_payload(payload)
        except (ValueError, KeyError, TypeError):
            logger.warning("Ignoring malformed change payload: %r", payload)
            return
        if event.table in self._tables:
            self._listener(event)

    def _on_terminate(self, _conn: Any) -> None:
        if not self._closed:
            logger.warning(
                "Change feed connection on %s lost; view stays usable via manual refresh",
                self._channel,
            )

    async def start(self) -> None:
        await self._conn.add_listener(self._channel, self._on_notify)
        self._conn.add_termination_listener(self._on_terminate)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if not self._conn.is_closed():
                await self._conn.remove_listener(self._channel, self._on_notify)
        finally:
            await self._conn.close()


class PostgresChangeFeed:
    def __init__(self, dsn: str | None = None, channel: str | None = None) -> None:
        self._dsn = dsn or asyncpg_dsn(settings.DATABASE_URL)
        self._channel = channel or settings.CHANGE_FEED_CHANNEL

    async def subscribe(
        self, tables: Collection[str], listener: ChangeListener
    ) -> PostgresSubscription:
        conn = await asyncpg.connect(self._dsn)
        subscription = PostgresSubscription(conn, self._channel, tables, listener)
        try:
            await subscription.start()
        except Exception:
            await conn.close()
            raise
        logger.info("Subscribed to %s for tables %s", self._channel, sorted(tables))
        return subscription
