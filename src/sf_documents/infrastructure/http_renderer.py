"""HTTP client for the invoice / delivery-slip rendering functions.

Request:  POST {RENDERER_BASE_URL}/generate-invoice  {"orderId": "..."}
Response: {"html": "<!DOCTYPE html>..."}

The HTML is returned exactly as received; printing is up to the caller.
"""
import logging

import httpx

from config.settings import settings
from src.sf_common.enums import DocumentKind
from src.sf_common.errors import DocumentRenderError

logger = logging.getLogger(__name__)

_FUNCTION_PATHS: dict[DocumentKind, str] = {
    DocumentKind.INVOICE: "generate-invoice",
    DocumentKind.DELIVERY_SLIP: "generate-delivery-slip",
}


class HttpDocumentRenderer:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        key = settings.RENDERER_API_KEY if api_key is None else api_key
        headers = {"Authorization": f"Bearer {key}"} if key else {}
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.RENDERER_BASE_URL).rstrip("/") + "/",
            headers=headers,
            timeout=timeout if timeout is not None else settings.RENDERER_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def render(self, kind: DocumentKind, order_id: str) -> str:
        path = _FUNCTION_PATHS[DocumentKind(kind)]
        try:
            resp = await self._client.post(path, json={"orderId": order_id})
        except httpx.HTTPError as exc:
            raise DocumentRenderError(order_id, f"renderer unreachable: {exc}") from exc

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            raise DocumentRenderError(order_id, f"HTTP {resp.status_code}: {detail}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise DocumentRenderError(order_id, "renderer returned non-JSON body") from exc

        html = body.get("html") if isinstance(body, dict) else None
        if not isinstance(html, str) or not html.strip():
            raise DocumentRenderError(order_id, "renderer returned an empty document")
        logger.debug("Rendered %s for order %s (%d chars)", kind, order_id, len(html))
        return html

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.text[:200]


_renderer: HttpDocumentRenderer | None = None


def get_document_renderer() -> HttpDocumentRenderer:
    """Get or create the process-wide renderer client."""
    global _renderer  # noqa: PLW0603
    if _renderer is None:
        _renderer = HttpDocumentRenderer()
    return _renderer


async def close_document_renderer() -> None:
    global _renderer  # noqa: PLW0603
    if _renderer is not None:
        await _renderer.aclose()
        _renderer = None
