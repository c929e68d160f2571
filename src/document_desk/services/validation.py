"""Shape validation of a document before submission.

All problems are collected in a single pass so they can be shown together.
Validation only reports; it never changes line values.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.documents import DocumentHeader, LineItem
from document_desk.domain.numeric import MAX_ENTRY, ZERO, try_parse_decimal
from document_desk.domain.schemas import get_schema
from document_desk.domain.value_objects import ValidationCode
from document_desk.exceptions import DocumentValidationError
from document_desk.services.tax import TaxResolver

LINES_KEY = "lines"


def line_key(client_id: UUID, field_name: str) -> str:
    return f"lines[{client_id}].{field_name}"


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True, slots=True)
class FieldError:
    key: str
    code: ValidationCode
    message: str
    client_id: UUID | None = None


@dataclass
class ValidationReport:
    """Errors keyed by header field name or ``lines[<client_id>].<field>``."""

    errors: dict[str, FieldError] = field(default_factory=dict)

    def add(
        self,
        key: str,
        code: ValidationCode,
        message: str,
        client_id: UUID | None = None,
    ) -> None:
        self.errors[key] = FieldError(key, code, message, client_id)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(self.errors.values())

    def __contains__(self, key: object) -> bool:
        return key in self.errors

    def codes(self) -> list[ValidationCode]:
        return [error.code for error in self.errors.values()]

    def for_line(self, client_id: UUID) -> list[FieldError]:
        return [error for error in self if error.client_id == client_id]

    def messages(self) -> dict[str, str]:
        return {key: error.message for key, error in self.errors.items()}

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise DocumentValidationError(self)


class Validator:
    def __init__(self, tax_resolver: TaxResolver | None = None) -> None:
        self._tax_resolver = tax_resolver or TaxResolver()

    def validate(
        self,
        header: DocumentHeader,
        lines: Sequence[LineItem],
        snapshot: CatalogSnapshot | None = None,
    ) -> ValidationReport:
        report = ValidationReport()
        self._validate_header(header, report)
        if not lines:
            report.add(
                LINES_KEY, ValidationCode.NO_LINES, "At least one item must be added."
            )
        for line in lines:
            self._validate_line(line, report, snapshot)
        return report

    def _validate_header(self, header: DocumentHeader, report: ValidationReport) -> None:
        schema = get_schema(header.kind)
        party = schema.counterparty_role.value.capitalize()

        if _is_blank(header.counterparty_code) or _is_blank(header.counterparty_name):
            report.add(
                "counterparty_code", ValidationCode.REQUIRED, f"{party} is required."
            )
        if header.document_date is None:
            report.add(
                "document_date",
                ValidationCode.REQUIRED,
                f"{schema.document_date_label} is required.",
            )
        if header.due_or_delivery_date is None:
            report.add(
                "due_or_delivery_date",
                ValidationCode.REQUIRED,
                f"{schema.secondary_date_label} is required.",
            )
        elif (
            header.document_date is not None
            and header.due_or_delivery_date < header.document_date
        ):
            report.add(
                "due_or_delivery_date",
                ValidationCode.DATE_ORDER,
                f"{schema.secondary_date_label} cannot be before "
                f"{schema.document_date_label}.",
            )

    def _validate_line(
        self,
        line: LineItem,
        report: ValidationReport,
        snapshot: CatalogSnapshot | None,
    ) -> None:
        cid = line.client_id

        if _is_blank(line.product_code):
            report.add(
                line_key(cid, "product_code"),
                ValidationCode.REQUIRED,
                "Product is required.",
                cid,
            )

        quantity = try_parse_decimal(line.quantity)
        if quantity is None or quantity <= ZERO:
            report.add(
                line_key(cid, "quantity"),
                ValidationCode.INVALID_QUANTITY,
                "Quantity must be > 0.",
                cid,
            )
        elif quantity > MAX_ENTRY:
            report.add(
                line_key(cid, "quantity"),
                ValidationCode.OUT_OF_RANGE,
                "Quantity is too large.",
                cid,
            )

        price = try_parse_decimal(line.unit_price)
        if price is None or price < ZERO:
            report.add(
                line_key(cid, "unit_price"),
                ValidationCode.INVALID_PRICE,
                "Price must be a valid number.",
                cid,
            )
        elif price > MAX_ENTRY:
            report.add(
                line_key(cid, "unit_price"),
                ValidationCode.OUT_OF_RANGE,
                "Price is too large.",
                cid,
            )

        if _is_blank(line.uom):
            report.add(
                line_key(cid, "uom"), ValidationCode.REQUIRED, "UOM is required.", cid
            )
        if _is_blank(line.warehouse_code):
            report.add(
                line_key(cid, "warehouse_code"),
                ValidationCode.REQUIRED,
                "Warehouse is required.",
                cid,
            )

        if snapshot is not None and self._tax_resolver.resolve(
            line.tax_code, snapshot
        ).is_not_found:
            report.add(
                line_key(cid, "tax_code"),
                ValidationCode.UNKNOWN_TAX_CODE,
                f"Tax code {line.tax_code!r} is not an active tax code.",
                cid,
            )
