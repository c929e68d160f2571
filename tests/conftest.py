from collections.abc import Sequence
from datetime import date
from decimal import Decimal

import pytest

from document_desk.config import Environment, Settings, get_settings
from document_desk.domain.catalog import CatalogEntry, CatalogSnapshot
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
    SourceLine,
    SubmissionReceipt,
)
from document_desk.domain.value_objects import DocumentKind
from document_desk.exceptions import DerivationFetchError
from document_desk.services.form_state import DocumentFormState
from document_desk.services.interfaces import SourceDocumentAdapter, SubmissionGateway


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("DOCDESK_API_BASE_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(environment=Environment.TESTING)


@pytest.fixture
def today() -> date:
    return date(2026, 1, 5)


@pytest.fixture
def snapshot() -> CatalogSnapshot:
    return CatalogSnapshot.from_entries(
        tax_codes=[
            CatalogEntry("GST18", "GST 18%", rate_percent=Decimal("18")),
            CatalogEntry("GST5", "GST 5%", rate_percent=Decimal("5")),
            CatalogEntry("EXEMPT", "Exempt", rate_percent=Decimal("0")),
            CatalogEntry("OLD12", "Retired 12%", rate_percent=Decimal("12"), active=False),
        ],
        vendors=[
            CatalogEntry(
                "V001",
                "Acme Supplies",
                attributes={
                    "address1": "Unit 4",
                    "address2": "",
                    "street": "12 Mill Road",
                    "city": "Pune",
                },
            ),
        ],
        customers=[CatalogEntry("C001", "Blue Retail")],
        products=[
            CatalogEntry(
                "P-100",
                "Steel Bolt",
                attributes={
                    "uom": "EA",
                    "purchasePrice": Decimal("80.00"),
                    "wholesalePrice": Decimal("100.00"),
                    "retailPrice": Decimal("120.00"),
                },
            ),
            CatalogEntry(
                "P-200",
                "Unpriced Washer",
                attributes={"uom": "BOX", "purchasePrice": None},
            ),
        ],
        uoms=[CatalogEntry("EA", "EA"), CatalogEntry("BOX", "BOX")],
        warehouses=[CatalogEntry("WH1", "Main Warehouse")],
    )


@pytest.fixture
def purchase_order() -> SourceDocument:
    return SourceDocument(
        kind=DocumentKind.PURCHASE_ORDER,
        document_id="17",
        document_number="PO-0017",
        counterparty_code="V001",
        counterparty_name="Acme Supplies",
        document_date=date(2025, 12, 20),
        due_or_delivery_date=date(2025, 12, 31),
        counterparty_ref_number="ACME-REF-9",
        ship_or_bill_address="Unit 4, 12 Mill Road, Pune",
        remarks="Urgent",
        lines=(
            SourceLine(
                line_id="1",
                product_code="P-100",
                product_name="Steel Bolt",
                quantity=Decimal("2"),
                uom="EA",
                unit_price=Decimal("100.00"),
                warehouse_code="WH1",
                tax_code="GST18",
            ),
            SourceLine(
                line_id="2",
                product_code="P-200",
                product_name="Unpriced Washer",
                quantity=Decimal("3"),
                uom="BOX",
                unit_price=Decimal("10.00"),
                warehouse_code="WH1",
                tax_code="",
            ),
        ),
    )


class FakeSourceAdapter(SourceDocumentAdapter):
    """In-memory source documents keyed by (kind, id)."""

    def __init__(self, documents: Sequence[SourceDocument] = ()) -> None:
        self.documents = {(doc.kind, doc.document_id): doc for doc in documents}
        self.fetched: list[tuple[DocumentKind, str]] = []
        self.on_fetch = None

    async def fetch_document(self, kind: DocumentKind, document_id: str) -> SourceDocument:
        self.fetched.append((kind, document_id))
        if self.on_fetch is not None:
            self.on_fetch()
        try:
            return self.documents[(kind, document_id)]
        except KeyError:
            raise DerivationFetchError(kind.value, document_id, "not found") from None

    async def list_documents(self, kind: DocumentKind) -> list[SourceDocument]:
        return [doc for (doc_kind, _), doc in self.documents.items() if doc_kind is kind]


class FakeGateway(SubmissionGateway):
    """Records submissions and answers with a fixed receipt or error."""

    def __init__(self, document_number: str | None = "GRPO-0001", error: Exception | None = None):
        self.document_number = document_number
        self.error = error
        self.submitted: list[tuple[DocumentHeader, tuple[LineItem, ...], DocumentTotals]] = []
        self.updated: list[str] = []
        self.attachments: list[tuple[Attachment, ...]] = []
        self.on_call = None

    async def submit(self, header, lines, totals, attachments=()) -> SubmissionReceipt:
        return self._answer(header, lines, totals, attachments)

    async def update(self, document_id, header, lines, totals, attachments=()) -> SubmissionReceipt:
        self.updated.append(document_id)
        return self._answer(header, lines, totals, attachments)

    def _answer(self, header, lines, totals, attachments) -> SubmissionReceipt:
        self.submitted.append((header, tuple(lines), totals))
        self.attachments.append(tuple(attachments))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return SubmissionReceipt(document_number=self.document_number, message="Saved")


@pytest.fixture
def source_adapter(purchase_order: SourceDocument) -> FakeSourceAdapter:
    return FakeSourceAdapter([purchase_order])


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_form(snapshot: CatalogSnapshot, settings: Settings):
    def _make(kind: DocumentKind = DocumentKind.GOODS_RECEIPT) -> DocumentFormState:
        return DocumentFormState(kind, snapshot, settings=settings)

    return _make


@pytest.fixture
def ready_form(make_form, today: date) -> DocumentFormState:
    """A goods receipt with a valid header and one 2 x 100.00 GST18 line."""
    form = make_form()
    form.seed_blank(today=today)
    form.select_counterparty("V001")
    form.set_header_field("due_or_delivery_date", date(2026, 1, 10))
    line = form.lines[0]
    form.select_product(line.client_id, "P-100")
    form.update_line(line.client_id, quantity="2", warehouse_code="WH1", tax_code="GST18")
    return form


@pytest.fixture
def make_source_adapter():
    return FakeSourceAdapter


@pytest.fixture
def make_gateway():
    return FakeGateway
