"""Operator notification port (the admin console's toast messages)."""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def success(self, message: str) -> None: ...

    async def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Fallback notifier used when no operator surface is attached."""

    async def success(self, message: str) -> None:
        logger.info("operator notice: %s", message)

    async def error(self, message: str) -> None:
        logger.warning("operator error: %s", message)
