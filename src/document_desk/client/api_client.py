"""HTTP client for the remote ERP / master-data service.

One ``DocumentAPIClient`` serves all three collaborators of the document
engine: the reference catalog, the source-document lookup used by
"copy from", and the submission gateway.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from document_desk.client.wire import (
    encode_form_fields,
    parse_catalog,
    parse_receipt,
    parse_source_document,
)
from document_desk.config import Settings, get_settings
from document_desk.domain.catalog import CatalogEntry
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
    SubmissionReceipt,
)
from document_desk.domain.schemas import get_schema
from document_desk.domain.value_objects import CatalogKind, DocumentKind
from document_desk.exceptions import (
    CatalogFetchError,
    DerivationFetchError,
    SubmissionError,
)
from document_desk.logging_config import get_logger
from document_desk.services.interfaces import (
    ReferenceCatalogAdapter,
    SourceDocumentAdapter,
    SubmissionGateway,
)

logger = get_logger(__name__)

CATALOG_PATHS: dict[CatalogKind, str] = {
    CatalogKind.VENDORS: "/Vendor",
    CatalogKind.CUSTOMERS: "/Customer",
    CatalogKind.PRODUCTS: "/Products",
    CatalogKind.UOMS: "/UOMs",
    CatalogKind.WAREHOUSES: "/Warehouse",
    CatalogKind.TAX_CODES: "/TaxDeclarations",
}

UPLOAD_FIELD = "UploadedFiles"

# Raised by the wire parsers on payloads of the wrong shape
_PAYLOAD_ERRORS = (ValidationError, TypeError, ValueError)


class APIError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API Error {status_code}: {detail}")


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        raw = payload.get("message") or payload.get("detail") or payload.get("title")
        if raw:
            return raw if isinstance(raw, str) else str(raw)
    return response.text


class DocumentAPIClient(ReferenceCatalogAdapter, SourceDocumentAdapter, SubmissionGateway):
    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = (
            client
            if client is not None
            else httpx.AsyncClient(
                base_url=self._base_url,
                timeout=settings.api_timeout,
                verify=settings.verify_tls,
            )
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DocumentAPIClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
    ) -> Any:
        r = await self._client.request(method, path, data=data, files=files or None)
        if 200 <= r.status_code < 300:
            if r.status_code == 204 or not r.content:
                return None
            return r.json()
        raise APIError(status_code=r.status_code, detail=_error_detail(r))

    # ------------------------------------------------------------------
    # Reference catalog
    # ------------------------------------------------------------------

    async def fetch_catalog(self, kind: CatalogKind) -> list[CatalogEntry]:
        try:
            payload = await self._request_json("GET", CATALOG_PATHS[kind])
            return parse_catalog(kind, payload)
        except APIError as e:
            raise CatalogFetchError(kind.value, e.detail or f"HTTP {e.status_code}") from e
        except httpx.HTTPError as e:
            raise CatalogFetchError(kind.value, str(e) or type(e).__name__) from e
        except _PAYLOAD_ERRORS as e:
            raise CatalogFetchError(kind.value, f"unexpected response: {e}") from e

    # ------------------------------------------------------------------
    # Source documents
    # ------------------------------------------------------------------

    async def fetch_document(
        self, kind: DocumentKind, document_id: str
    ) -> SourceDocument:
        schema = get_schema(kind)
        try:
            payload = await self._request_json("GET", f"/{schema.endpoint}/{document_id}")
            return parse_source_document(schema, payload, document_id=str(document_id))
        except APIError as e:
            reason = "not found" if e.status_code == 404 else e.detail or f"HTTP {e.status_code}"
            raise DerivationFetchError(schema.title, str(document_id), reason) from e
        except httpx.HTTPError as e:
            raise DerivationFetchError(
                schema.title, str(document_id), str(e) or type(e).__name__
            ) from e
        except _PAYLOAD_ERRORS as e:
            raise DerivationFetchError(
                schema.title, str(document_id), f"unexpected response: {e}"
            ) from e

    async def list_documents(self, kind: DocumentKind) -> list[SourceDocument]:
        schema = get_schema(kind)
        try:
            payload = await self._request_json("GET", f"/{schema.endpoint}")
            if not isinstance(payload, list):
                raise TypeError(f"expected a list of {schema.title}")
            return [parse_source_document(schema, row) for row in payload]
        except APIError as e:
            raise DerivationFetchError(
                schema.title, "*", e.detail or f"HTTP {e.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise DerivationFetchError(schema.title, "*", str(e) or type(e).__name__) from e
        except _PAYLOAD_ERRORS as e:
            raise DerivationFetchError(schema.title, "*", f"unexpected response: {e}") from e

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        totals: DocumentTotals,
        attachments: Sequence[Attachment] = (),
    ) -> SubmissionReceipt:
        schema = get_schema(header.kind)
        return await self._send("POST", f"/{schema.endpoint}", header, lines, totals, attachments)

    async def update(
        self,
        document_id: str,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        totals: DocumentTotals,
        attachments: Sequence[Attachment] = (),
    ) -> SubmissionReceipt:
        schema = get_schema(header.kind)
        return await self._send(
            "PUT", f"/{schema.endpoint}/{document_id}", header, lines, totals, attachments
        )

    async def _send(
        self,
        method: str,
        path: str,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        totals: DocumentTotals,
        attachments: Sequence[Attachment],
    ) -> SubmissionReceipt:
        schema = get_schema(header.kind)
        try:
            fields = encode_form_fields(schema, header, lines, totals)
        except _PAYLOAD_ERRORS as e:
            raise SubmissionError(f"Could not prepare {schema.title} for saving: {e}") from e
        files = [(UPLOAD_FIELD, attachment.as_upload()) for attachment in attachments]
        logger.debug(
            "submission_request",
            method=method,
            path=path,
            line_count=len(lines),
            attachment_count=len(files),
        )
        try:
            payload = await self._request_json(method, path, data=fields, files=files)
        except APIError as e:
            raise SubmissionError(
                e.detail or f"Failed to save {schema.title}.", status_code=e.status_code
            ) from e
        except httpx.HTTPError as e:
            raise SubmissionError(
                f"Could not reach the server to save {schema.title}: {e}"
            ) from e
        except ValueError as e:
            raise SubmissionError(f"Unreadable response saving {schema.title}: {e}") from e
        receipt = parse_receipt(schema, payload)
        if receipt.document_number is None:
            logger.warning("submission_receipt_without_number", method=method, path=path)
        return receipt
