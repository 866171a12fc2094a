"""DocumentRenderer Protocol — the printable-document RPC collaborator."""
from typing import Protocol

from src.sf_common.enums import DocumentKind


class DocumentRendererProtocol(Protocol):
    async def render(self, kind: DocumentKind, order_id: str) -> str:
        """Return the document HTML, or raise DocumentRenderError."""
        ...
