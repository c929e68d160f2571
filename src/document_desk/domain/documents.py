"""Document header, line item and totals models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from document_desk.domain.numeric import ZERO, EnteredNumber
from document_desk.domain.value_objects import DocumentKind


@dataclass(frozen=True, slots=True)
class SourceLineRef:
    """Pointer from a derived line back to the line it was copied from."""

    document_kind: DocumentKind
    document_number: str
    line_id: str


@dataclass(frozen=True, slots=True)
class LineItem:
    """One row of a document.

    quantity and unit_price hold the value as entered. tax_amount and
    line_total are derived by LineCalculator and are not editable.
    """

    client_id: UUID = field(default_factory=uuid4)
    source_line_ref: SourceLineRef | None = None
    product_code: str = ""
    product_name: str = ""
    quantity: EnteredNumber = Decimal("1")
    uom: str = ""
    unit_price: EnteredNumber = ""
    warehouse_code: str = ""
    tax_code: str = ""
    tax_amount: Decimal = ZERO
    line_total: Decimal = ZERO

    @property
    def is_derived(self) -> bool:
        return self.source_line_ref is not None


@dataclass(frozen=True, slots=True)
class DocumentHeader:
    kind: DocumentKind
    document_number: str | None = None
    counterparty_code: str = ""
    counterparty_name: str = ""
    document_date: date | None = None
    due_or_delivery_date: date | None = None
    counterparty_ref_number: str = ""
    ship_or_bill_address: str = ""
    remarks: str = ""
    based_on_document_number: str | None = None

    @property
    def is_persisted(self) -> bool:
        return self.document_number is not None


@dataclass(frozen=True, slots=True)
class DocumentTotals:
    product_subtotal: Decimal = ZERO
    tax_total: Decimal = ZERO
    grand_total: Decimal = ZERO

    def as_dict(self) -> dict[str, str]:
        return {
            "product_subtotal": f"{self.product_subtotal:.2f}",
            "tax_total": f"{self.tax_total:.2f}",
            "grand_total": f"{self.grand_total:.2f}",
        }


@dataclass(frozen=True, slots=True)
class SourceLine:
    """A line of an existing document as returned by the remote service."""

    line_id: str
    product_code: str = ""
    product_name: str = ""
    quantity: EnteredNumber = ZERO
    uom: str = ""
    unit_price: EnteredNumber = ZERO
    warehouse_code: str = ""
    tax_code: str = ""


@dataclass(frozen=True)
class SourceDocument:
    """An existing document fetched from the remote service."""

    kind: DocumentKind
    document_id: str
    document_number: str
    counterparty_code: str = ""
    counterparty_name: str = ""
    document_date: date | None = None
    due_or_delivery_date: date | None = None
    counterparty_ref_number: str = ""
    ship_or_bill_address: str = ""
    remarks: str = ""
    based_on_document_number: str | None = None
    lines: tuple[SourceLine, ...] = ()


@dataclass(frozen=True, slots=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    def as_upload(self) -> tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type)


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    document_number: str | None
    message: str = ""
    raw: dict[str, Any] = field(default_factory=dict)
