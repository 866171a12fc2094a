"""Ports used by the dispatch service."""
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sf_delivery.domain.models import DeliveryProvider


class DeliveryGatewayProtocol(Protocol):
    async def invoke(self, body: dict[str, Any]) -> dict[str, Any]: ...


class DeliveryProviderRepositoryProtocol(Protocol):
    async def get_active(
        self, provider_id: str, db: AsyncSession
    ) -> DeliveryProvider | None: ...

    async def list_active(self, db: AsyncSession) -> list[DeliveryProvider]: ...
