"""HTTP client for the delivery-api courier gateway."""
import logging
from typing import Any

import httpx

from config.settings import settings
from src.sf_common.errors import DispatchError

logger = logging.getLogger(__name__)


class HttpDeliveryApiClient:
    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        key = settings.DELIVERY_API_KEY if api_key is None else api_key
        self._url = url or settings.DELIVERY_API_URL
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {key}"} if key else {},
            timeout=None,
            transport=transport,
        )

    async def invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise DispatchError(f"delivery gateway unreachable: {exc}") from exc
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 400:
            detail = data.get("error") if isinstance(data, dict) else resp.text[:200]
            raise DispatchError(f"HTTP {resp.status_code}: {detail}")
        if not isinstance(data, dict):
            raise DispatchError("delivery gateway returned a non-object body")
        if data.get("error"):
            raise DispatchError(str(data["error"]))
        logger.debug("delivery-api %s/%s ok", body.get("provider_type"), body.get("action"))
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


_client: HttpDeliveryApiClient | None = None


def get_delivery_client() -> HttpDeliveryApiClient:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = HttpDeliveryApiClient()
    return _client


async def close_delivery_client() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
