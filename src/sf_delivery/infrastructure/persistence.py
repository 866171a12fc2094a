"""DeliveryProviderRepository — raw SQL lookups of configured couriers."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sf_delivery.domain.models import DeliveryProvider

_GET_ACTIVE_PROVIDER_SQL = text("""
    SELECT id, name, provider_type, is_active
    FROM delivery_providers
    WHERE id = :id AND is_active = TRUE
""")

_LIST_ACTIVE_PROVIDERS_SQL = text("""
    SELECT id, name, provider_type, is_active
    FROM delivery_providers
    WHERE is_active = TRUE
    ORDER BY name ASC
""")


def _row_to_provider(row: Any) -> DeliveryProvider:
    return DeliveryProvider(
        id=str(row.id),
        name=row.name,
        provider_type=row.provider_type,
        is_active=bool(row.is_active),
    )


class DeliveryProviderRepository:
    async def get_active(self, provider_id: str, db: AsyncSession) -> DeliveryProvider | None:
        result = await db.execute(_GET_ACTIVE_PROVIDER_SQL, {"id": provider_id})
        row = result.fetchone()
        return _row_to_provider(row) if row else None

    async def list_active(self, db: AsyncSession) -> list[DeliveryProvider]:
        result = await db.execute(_LIST_ACTIVE_PROVIDERS_SQL)
        return [_row_to_provider(row) for row in result.fetchall()]
