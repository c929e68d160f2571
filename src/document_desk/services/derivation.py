"""Seeding a new document from an existing one ("copy from").

The target header keeps a one-hop pointer to the source document and each
line keeps a pointer to the source line. Derived totals are never copied:
lines are recomputed against the target form's own catalog snapshot because
tax rates may have changed since the source was created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import uuid4

from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.documents import (
    DocumentHeader,
    LineItem,
    SourceDocument,
    SourceLine,
    SourceLineRef,
)
from document_desk.domain.schemas import DocumentSchema, get_schema
from document_desk.domain.value_objects import DocumentKind
from document_desk.exceptions import (
    DerivationError,
    DerivationFetchError,
    UnsupportedDerivationError,
)
from document_desk.logging_config import get_logger
from document_desk.services.interfaces import SourceDocumentAdapter
from document_desk.services.line_calculator import LineCalculator

logger = get_logger(__name__)


@dataclass(frozen=True)
class DerivationSeed:
    header: DocumentHeader
    lines: tuple[LineItem, ...] = field(default_factory=tuple)


def _expected_source(schema: DocumentSchema) -> DocumentKind:
    if schema.source_kind is None:
        raise UnsupportedDerivationError(schema.kind.value, None)
    return schema.source_kind


class DerivationMapper:
    def __init__(self, calculator: LineCalculator | None = None) -> None:
        self._calculator = calculator or LineCalculator()

    def derive_from(
        self,
        source: SourceDocument,
        snapshot: CatalogSnapshot,
        *,
        target_kind: DocumentKind,
        today: date | None = None,
    ) -> DerivationSeed:
        schema = get_schema(target_kind)
        if _expected_source(schema) is not source.kind:
            raise UnsupportedDerivationError(target_kind.value, source.kind.value)

        header = DocumentHeader(
            kind=target_kind,
            document_number=None,
            counterparty_code=source.counterparty_code,
            counterparty_name=source.counterparty_name,
            document_date=today or date.today(),
            due_or_delivery_date=None,
            counterparty_ref_number=source.counterparty_ref_number,
            ship_or_bill_address=source.ship_or_bill_address,
            remarks=source.remarks,
            based_on_document_number=source.document_number,
        )
        lines = tuple(
            self._calculator.recompute(self._map_line(source, line), snapshot)
            for line in source.lines
        )
        return DerivationSeed(header=header, lines=lines)

    @staticmethod
    def _map_line(source: SourceDocument, line: SourceLine) -> LineItem:
        return LineItem(
            client_id=uuid4(),
            source_line_ref=SourceLineRef(
                document_kind=source.kind,
                document_number=source.document_number,
                line_id=line.line_id,
            ),
            product_code=line.product_code,
            product_name=line.product_name,
            quantity=line.quantity,
            uom=line.uom,
            unit_price=line.unit_price,
            warehouse_code=line.warehouse_code,
            tax_code=line.tax_code,
        )

    async def derive(
        self,
        adapter: SourceDocumentAdapter,
        target_kind: DocumentKind,
        source_id: str,
        snapshot: CatalogSnapshot,
        *,
        today: date | None = None,
    ) -> DerivationSeed:
        """Fetch the source document and map it in one step.

        Raises:
            DerivationFetchError: the source could not be fetched. Nothing is
                produced, so the caller's form stays as it was.
        """
        source_kind = _expected_source(get_schema(target_kind))
        try:
            source = await adapter.fetch_document(source_kind, source_id)
        except DerivationFetchError as e:
            logger.warning(
                "derivation_failed",
                target_kind=target_kind.value,
                source_kind=source_kind.value,
                source_id=source_id,
                reason=e.context.get("reason"),
            )
            raise

        seed = self.derive_from(source, snapshot, target_kind=target_kind, today=today)
        logger.info(
            "document_derived",
            target_kind=target_kind.value,
            based_on=source.document_number,
            line_count=len(seed.lines),
        )
        return seed

    async def list_source_candidates(
        self,
        adapter: SourceDocumentAdapter,
        target_kind: DocumentKind,
        counterparty_code: str,
    ) -> list[SourceDocument]:
        """Source documents of the expected kind belonging to the counterparty."""
        schema = get_schema(target_kind)
        source_kind = _expected_source(schema)
        wanted = counterparty_code.strip().lower()
        if not wanted:
            raise DerivationError(
                f"Please select a {schema.counterparty_role.value} first."
            )
        documents = await adapter.list_documents(source_kind)
        return [
            document
            for document in documents
            if document.counterparty_code.strip().lower() == wanted
        ]
