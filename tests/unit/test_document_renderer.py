"""Unit tests for HttpDocumentRenderer over httpx.MockTransport."""
import json

import httpx
import pytest

from src.sf_common.enums import DocumentKind
from src.sf_common.errors import DocumentRenderError
from src.sf_documents.infrastructure.http_renderer import HttpDocumentRenderer

BASE = "http://renderer.test/functions/v1"


def _renderer(handler, api_key: str = "") -> HttpDocumentRenderer:
    return HttpDocumentRenderer(
        base_url=BASE, api_key=api_key, transport=httpx.MockTransport(handler)
    )


class TestRender:
    @pytest.mark.asyncio
    async def test_invoice_request_and_html(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"html": "<!DOCTYPE html><p>INV</p>"})

        renderer = _renderer(handler, api_key="anon-key")
        html = await renderer.render(DocumentKind.INVOICE, "ord-1")

        assert html == "<!DOCTYPE html><p>INV</p>"
        req = seen[0]
        assert req.method == "POST"
        assert str(req.url) == f"{BASE}/generate-invoice"
        assert json.loads(req.content) == {"orderId": "ord-1"}
        assert req.headers["Authorization"] == "Bearer anon-key"
        await renderer.aclose()

    @pytest.mark.asyncio
    async def test_delivery_slip_path(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"html": "<p>slip</p>"})

        renderer = _renderer(handler)
        await renderer.render(DocumentKind.DELIVERY_SLIP, "ord-2")
        assert paths == ["/functions/v1/generate-delivery-slip"]
        await renderer.aclose()

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self) -> None:
        headers: list[httpx.Headers] = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers)
            return httpx.Response(200, json={"html": "<p/>"})

        renderer = _renderer(handler)
        await renderer.render(DocumentKind.INVOICE, "ord-1")
        assert "Authorization" not in headers[0]
        await renderer.aclose()

    @pytest.mark.asyncio
    async def test_http_error_uses_error_field(self) -> None:
        renderer = _renderer(
            lambda r: httpx.Response(404, json={"error": "Order not found"})
        )
        with pytest.raises(DocumentRenderError) as exc_info:
            await renderer.render(DocumentKind.INVOICE, "ord-9")
        assert "HTTP 404: Order not found" in exc_info.value.message
        assert exc_info.value.code == 7001
        await renderer.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"html": ""}),
            httpx.Response(200, json={"other": "x"}),
            httpx.Response(200, text="<html>not json</html>"),
        ],
    )
    async def test_unusable_body(self, response: httpx.Response) -> None:
        renderer = _renderer(lambda r: response)
        with pytest.raises(DocumentRenderError):
            await renderer.render(DocumentKind.INVOICE, "ord-1")
        await renderer.aclose()

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        renderer = _renderer(handler)
        with pytest.raises(DocumentRenderError) as exc_info:
            await renderer.render(DocumentKind.INVOICE, "ord-1")
        assert "unreachable" in exc_info.value.message
        await renderer.aclose()
