"""Change notifications pushed by the order store.

Events carry no row diff: consumers are expected to re-query.
"""
import json
from collections.abc import Callable, Collection
from dataclasses import dataclass
from typing import Protocol

from src.sf_common.enums import ChangeEventType


@dataclass(frozen=True)
class ChangeEvent:
    event: ChangeEventType
    table: str

    @classmethod
    def from_payload(cls, payload: str) -> "ChangeEvent":
        """Parse a trigger payload: {"event": "INSERT", "table": "orders"}."""
        data = json.loads(payload)
        return cls(event=ChangeEventType(str(data["event"]).upper()), table=str(data["table"]))


ChangeListener = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    async def close(self) -> None: ...


class ChangeFeedProtocol(Protocol):
    async def subscribe(
        self, tables: Collection[str], listener: ChangeListener
    ) -> Subscription:
        """Register ``listener`` for changes on ``tables`` until the subscription is closed."""
        ...
