from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from document_desk.client.api_client import APIError, DocumentAPIClient
from document_desk.domain.documents import Attachment, DocumentHeader, DocumentTotals, LineItem
from document_desk.domain.value_objects import CatalogKind, DocumentKind
from document_desk.exceptions import CatalogFetchError, DerivationFetchError, SubmissionError

BASE_URL = "http://test/api"


def make_client(handler, settings) -> DocumentAPIClient:
    transport = httpx.MockTransport(handler)
    return DocumentAPIClient(
        client=httpx.AsyncClient(transport=transport, base_url=BASE_URL),
        base_url=BASE_URL,
        settings=settings,
    )


@pytest.fixture
def header() -> DocumentHeader:
    return DocumentHeader(
        kind=DocumentKind.GOODS_RECEIPT,
        counterparty_code="V001",
        counterparty_name="Acme Supplies",
        document_date=date(2026, 1, 5),
        based_on_document_number="PO-0017",
    )


@pytest.fixture
def lines() -> list[LineItem]:
    return [
        LineItem(
            product_code="P-100",
            quantity="2",
            uom="EA",
            unit_price="100",
            warehouse_code="WH1",
            tax_code="GST18",
            tax_amount=Decimal("36.00"),
            line_total=Decimal("236.00"),
        )
    ]


class TestFetchCatalog:
    async def test_fetches_tax_declarations(self, settings) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(
                200, json=[{"taxCode": "GST18", "totalPercentage": 18, "isActive": True}]
            )

        async with make_client(handler, settings) as client:
            entries = await client.fetch_catalog(CatalogKind.TAX_CODES)

        assert seen == ["/api/TaxDeclarations"]
        assert entries[0].rate_percent == Decimal("18")

    async def test_http_error_becomes_catalog_fetch_error(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "database offline"})

        async with make_client(handler, settings) as client:
            with pytest.raises(CatalogFetchError) as exc:
                await client.fetch_catalog(CatalogKind.PRODUCTS)

        assert exc.value.context == {"kind": "products", "reason": "database offline"}
        assert isinstance(exc.value.__cause__, APIError)
        assert exc.value.__cause__.status_code == 500

    async def test_network_error_becomes_catalog_fetch_error(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler, settings) as client:
            with pytest.raises(CatalogFetchError) as exc:
                await client.fetch_catalog(CatalogKind.UOMS)

        assert "connection refused" in exc.value.message

    async def test_malformed_payload_becomes_catalog_fetch_error(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"not": "a list"})

        async with make_client(handler, settings) as client:
            with pytest.raises(CatalogFetchError):
                await client.fetch_catalog(CatalogKind.VENDORS)


class TestFetchDocument:
    async def test_fetches_by_id(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/PurchaseOrders/17"
            return httpx.Response(
                200,
                json={
                    "purchaseOrderNo": "PO-0017",
                    "vendorCode": "V001",
                    "purchaseItems": [{"productCode": "P-100", "quantity": 2, "price": 100}],
                },
            )

        async with make_client(handler, settings) as client:
            document = await client.fetch_document(DocumentKind.PURCHASE_ORDER, "17")

        assert document.document_id == "17"
        assert document.document_number == "PO-0017"
        assert len(document.lines) == 1

    async def test_not_found(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="")

        async with make_client(handler, settings) as client:
            with pytest.raises(DerivationFetchError) as exc:
                await client.fetch_document(DocumentKind.PURCHASE_ORDER, "99")

        assert exc.value.message == "Failed to fetch details for Purchase Order #99: not found"

    async def test_list_documents(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/GRPOs"
            return httpx.Response(
                200,
                json=[
                    {"id": 1, "grpoNo": "GRPO-1", "vendorCode": "V001"},
                    {"id": 2, "grpoNo": "GRPO-2", "vendorCode": "V002"},
                ],
            )

        async with make_client(handler, settings) as client:
            documents = await client.list_documents(DocumentKind.GOODS_RECEIPT)

        assert [(d.document_id, d.document_number) for d in documents] == [
            ("1", "GRPO-1"),
            ("2", "GRPO-2"),
        ]

    async def test_list_documents_failure(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"title": "Bad Gateway"})

        async with make_client(handler, settings) as client:
            with pytest.raises(DerivationFetchError) as exc:
                await client.list_documents(DocumentKind.SALES_ORDER)

        assert exc.value.context["reason"] == "Bad Gateway"


class TestSubmit:
    async def test_posts_form_fields(self, settings, header, lines) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["form"] = parse_qs(request.content.decode())
            return httpx.Response(201, json={"grpoNo": "GRPO-0001", "message": "Created"})

        totals = DocumentTotals(Decimal("200.00"), Decimal("36.00"), Decimal("236.00"))
        async with make_client(handler, settings) as client:
            receipt = await client.submit(header, lines, totals)

        assert receipt.document_number == "GRPO-0001"
        assert captured["method"] == "POST"
        assert captured["path"] == "/api/GRPOs"
        form = captured["form"]
        assert form["VendorCode"] == ["V001"]
        assert form["PurchaseOrderNo"] == ["PO-0017"]
        assert form["NetTotal"] == ["236.00"]
        items = json.loads(form["GRPOItemsJson"][0])
        assert items[0]["ProductCode"] == "P-100"
        assert items[0]["Total"] == 236.0

    async def test_attachments_sent_as_multipart(self, settings, header, lines) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["content_type"] = request.headers["content-type"]
            captured["body"] = request.content
            return httpx.Response(200, json={"grpoNo": "GRPO-0002"})

        attachment = Attachment("delivery-note.pdf", b"%PDF-1.4", "application/pdf")
        async with make_client(handler, settings) as client:
            await client.submit(header, lines, DocumentTotals(), [attachment])

        assert captured["content_type"].startswith("multipart/form-data")
        assert b'name="UploadedFiles"; filename="delivery-note.pdf"' in captured["body"]
        assert b'name="GRPOItemsJson"' in captured["body"]

    async def test_update_uses_put(self, settings, header, lines) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(204)

        async with make_client(handler, settings) as client:
            receipt = await client.update("42", header, lines, DocumentTotals())

        assert seen == [("PUT", "/api/GRPOs/42")]
        assert receipt.document_number is None

    async def test_unencodable_lines_become_submission_error(self, settings, header) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(201, json={"grpoNo": "GRPO-0001"})

        broken = LineItem(product_code=None, quantity="1", unit_price="5")
        async with make_client(handler, settings) as client:
            with pytest.raises(SubmissionError) as exc:
                await client.submit(header, [broken], DocumentTotals())

        assert calls == []
        assert exc.value.message.startswith("Could not prepare Goods Receipt PO")

    async def test_rejection_becomes_submission_error(self, settings, header, lines) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"detail": "Vendor is blocked"})

        async with make_client(handler, settings) as client:
            with pytest.raises(SubmissionError) as exc:
                await client.submit(header, lines, DocumentTotals())

        assert exc.value.message == "Vendor is blocked"
        assert exc.value.status_code == 400
        assert exc.value.retryable

    async def test_network_failure_becomes_submission_error(
        self, settings, header, lines
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler, settings) as client:
            with pytest.raises(SubmissionError) as exc:
                await client.submit(header, lines, DocumentTotals())

        assert exc.value.status_code is None
        assert "Goods Receipt PO" in exc.value.message


class TestClientConfiguration:
    def test_base_url_from_settings(self, settings) -> None:
        settings.api_base_url = "https://erp.example.com/api"

        client = DocumentAPIClient(settings=settings)

        assert client.base_url == "https://erp.example.com/api"

    def test_explicit_base_url_strips_slash(self, settings) -> None:
        client = DocumentAPIClient(base_url="http://other/api/", settings=settings)

        assert client.base_url == "http://other/api"
