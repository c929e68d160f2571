from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from document_desk.domain.catalog import CatalogEntry
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
    SubmissionReceipt,
)
from document_desk.domain.value_objects import CatalogKind, DocumentKind


class ReferenceCatalogAdapter(ABC):
    """Read-only lookup tables (vendors, customers, products, UOMs, ...)."""

    @abstractmethod
    async def fetch_catalog(self, kind: CatalogKind) -> list[CatalogEntry]:
        pass


class SourceDocumentAdapter(ABC):
    """Existing documents that new documents can be derived from."""

    @abstractmethod
    async def fetch_document(
        self, kind: DocumentKind, document_id: str
    ) -> SourceDocument:
        pass

    @abstractmethod
    async def list_documents(self, kind: DocumentKind) -> list[SourceDocument]:
        pass


class SubmissionGateway(ABC):
    """Persists documents in the remote service.

    Implementations raise SubmissionError on transport failure or remote
    rejection.
    """

    @abstractmethod
    async def submit(
        self,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        totals: DocumentTotals,
        attachments: Sequence[Attachment] = (),
    ) -> SubmissionReceipt:
        pass

    @abstractmethod
    async def update(
        self,
        document_id: str,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        totals: DocumentTotals,
        attachments: Sequence[Attachment] = (),
    ) -> SubmissionReceipt:
        pass
