"""In-session state of one document-entry form.

Every edit runs synchronously through ``edit -> recompute -> aggregate`` before
returning, so ``totals`` always matches the current lines. Only source
fetches and submission are awaited.

Lifecycle::

    EMPTY -> SEEDED -> EDITING -> VALIDATING -> SUBMITTING -> SUBMITTED
                          ^            |              |
                          +------------+              +-> SUBMISSION_FAILED -> EDITING

``discard()`` moves any state to DISCARDED; a submission already in flight
is not cancelled but its result is ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

from document_desk.config import Settings, get_settings
from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SubmissionReceipt,
)
from document_desk.domain.schemas import DocumentSchema, get_schema
from document_desk.domain.value_objects import CatalogKind, DocumentKind, FormStatus
from document_desk.exceptions import (
    InvalidFieldValueError,
    InvalidStateTransitionError,
    LineNotFoundError,
    ReadOnlyFieldError,
    SubmissionError,
)
from document_desk.logging_config import form_context, get_logger
from document_desk.services.aggregator import DocumentAggregator
from document_desk.services.derivation import DerivationMapper, DerivationSeed
from document_desk.services.interfaces import SourceDocumentAdapter, SubmissionGateway
from document_desk.services.line_calculator import RECALCULATION_FIELDS, LineCalculator
from document_desk.services.validation import ValidationReport, Validator

logger = get_logger(__name__)

EDITABLE_LINE_FIELDS = frozenset(
    {
        "product_code",
        "product_name",
        "quantity",
        "uom",
        "unit_price",
        "warehouse_code",
        "tax_code",
    }
)

EDITABLE_HEADER_FIELDS = frozenset(
    {
        "counterparty_code",
        "counterparty_name",
        "document_date",
        "due_or_delivery_date",
        "counterparty_ref_number",
        "ship_or_bill_address",
        "remarks",
    }
)

_DATE_FIELDS = frozenset({"document_date", "due_or_delivery_date"})
_NUMERIC_LINE_FIELDS = frozenset({"quantity", "unit_price"})

_LOCKED_STATUSES = frozenset(
    {FormStatus.SUBMITTING, FormStatus.SUBMITTED, FormStatus.DISCARDED}
)


def _coerce_date(field_name: str, value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T")[0].strip())
        except ValueError:
            raise InvalidFieldValueError(field_name, value) from None
    raise InvalidFieldValueError(field_name, value)


def _coerce_text(value: Any) -> str:
    return "" if value is None else str(value)


def _join_address(*parts: Any) -> str:
    return ", ".join(str(part).strip() for part in parts if part and str(part).strip())


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    status: FormStatus
    receipt: SubmissionReceipt | None = None
    report: ValidationReport | None = None
    error: SubmissionError | None = None

    @property
    def accepted(self) -> bool:
        return self.status is FormStatus.SUBMITTED


class DocumentFormState:
    """Editable header, ordered lines, attachments and derived totals of one form."""

    def __init__(
        self,
        kind: DocumentKind,
        snapshot: CatalogSnapshot,
        *,
        settings: Settings | None = None,
        calculator: LineCalculator | None = None,
        aggregator: DocumentAggregator | None = None,
        validator: Validator | None = None,
        mapper: DerivationMapper | None = None,
    ) -> None:
        self.form_id: UUID = uuid4()
        self.schema: DocumentSchema = get_schema(kind)
        self._settings = settings or get_settings()
        self._snapshot = snapshot
        self._calculator = calculator or LineCalculator()
        self._aggregator = aggregator or DocumentAggregator()
        self._validator = validator or Validator()
        self._mapper = mapper or DerivationMapper(self._calculator)

        self._header = DocumentHeader(kind=self.schema.kind)
        self._lines: list[LineItem] = []
        self._attachments: list[Attachment] = []
        self._totals = DocumentTotals()
        self._report = ValidationReport()
        self._status = FormStatus.EMPTY
        self._document_id: str | None = None
        self._last_error: SubmissionError | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def kind(self) -> DocumentKind:
        return self.schema.kind

    @property
    def status(self) -> FormStatus:
        return self._status

    @property
    def header(self) -> DocumentHeader:
        return self._header

    @property
    def lines(self) -> tuple[LineItem, ...]:
        return tuple(self._lines)

    @property
    def totals(self) -> DocumentTotals:
        return self._totals

    @property
    def report(self) -> ValidationReport:
        return self._report

    @property
    def attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._attachments)

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def last_error(self) -> SubmissionError | None:
        return self._last_error

    @property
    def is_update(self) -> bool:
        return self._document_id is not None

    @property
    def display_number(self) -> str:
        return self._header.document_number or self._settings.pending_number_label

    def line(self, client_id: UUID) -> LineItem:
        return self._lines[self._index_of(client_id)]

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_blank(self, *, today: date | None = None, blank_line: bool = True) -> None:
        """Start a manual entry: today's date and optionally one empty row."""
        self._ensure_editable("seed")
        self._header = DocumentHeader(
            kind=self.kind, document_date=today or date.today()
        )
        self._lines = [self._new_line()] if blank_line else []
        self._document_id = None
        self._settle(FormStatus.SEEDED)

    def seed_existing(
        self,
        document_id: str,
        header: DocumentHeader,
        lines: Iterable[LineItem],
    ) -> None:
        """Load a persisted document for editing; submission then updates it."""
        self._ensure_editable("seed")
        if header.kind is not self.kind:
            raise InvalidFieldValueError("kind", header.kind.value)
        self._header = header
        self._lines = self._calculator.recompute_all(lines, self._snapshot)
        self._document_id = document_id
        self._settle(FormStatus.SEEDED)

    async def load_from_source(
        self,
        adapter: SourceDocumentAdapter,
        source_id: str,
        *,
        today: date | None = None,
    ) -> DerivationSeed:
        """Replace header and lines with a copy of the chosen source document.

        On DerivationFetchError the form is left exactly as it was.
        """
        self._ensure_editable("copy from a source document")
        with form_context(self.form_id, self.kind, source_id=source_id):
            seed = await self._mapper.derive(
                adapter, self.kind, source_id, self._snapshot, today=today
            )
            if self._status is FormStatus.DISCARDED:
                logger.info("derivation_result_ignored")
                return seed
        self._header = seed.header
        self._lines = list(seed.lines)
        self._document_id = None
        self._settle(FormStatus.SEEDED)
        return seed

    # ------------------------------------------------------------------
    # Header edits
    # ------------------------------------------------------------------

    def set_header_field(self, field_name: str, value: Any) -> DocumentHeader:
        self._ensure_editable("edit the header")
        if field_name not in EDITABLE_HEADER_FIELDS:
            raise ReadOnlyFieldError(field_name)
        if field_name in _DATE_FIELDS:
            value = _coerce_date(field_name, value)
        else:
            value = _coerce_text(value)
        self._header = replace(self._header, **{field_name: value})
        self._settle(FormStatus.EDITING)
        return self._header

    def select_counterparty(self, code: str) -> DocumentHeader:
        """Fill counterparty name and address from the catalog."""
        self._ensure_editable("edit the header")
        entry = self._snapshot.require(self.schema.counterparty_catalog, code)
        address = entry.attribute("address") or _join_address(
            entry.attribute("address1"),
            entry.attribute("address2"),
            entry.attribute("street"),
            entry.attribute("city"),
        )
        self._header = replace(
            self._header,
            counterparty_code=entry.code,
            counterparty_name=entry.name,
            ship_or_bill_address=address,
        )
        self._settle(FormStatus.EDITING)
        return self._header

    # ------------------------------------------------------------------
    # Line edits
    # ------------------------------------------------------------------

    def add_line(self) -> LineItem:
        self._ensure_editable("add a line")
        line = self._new_line()
        self._lines.append(line)
        self._settle(FormStatus.EDITING)
        logger.debug("line_added", form_id=str(self.form_id), client_id=str(line.client_id))
        return line

    def remove_line(self, client_id: UUID) -> LineItem:
        self._ensure_editable("remove a line")
        removed = self._lines.pop(self._index_of(client_id))
        self._settle(FormStatus.EDITING)
        logger.debug(
            "line_removed",
            form_id=str(self.form_id),
            client_id=str(client_id),
            derived=removed.is_derived,
        )
        return removed

    def update_line(self, client_id: UUID, **changes: Any) -> LineItem:
        """Apply field edits to one line and recompute it if needed."""
        self._ensure_editable("edit a line")
        for field_name in changes:
            if field_name not in EDITABLE_LINE_FIELDS:
                raise ReadOnlyFieldError(field_name)

        index = self._index_of(client_id)
        changes = {
            name: value if name in _NUMERIC_LINE_FIELDS else _coerce_text(value)
            for name, value in changes.items()
        }
        line = replace(self._lines[index], **changes)
        if RECALCULATION_FIELDS.intersection(changes):
            line = self._calculator.recompute(line, self._snapshot)
        self._lines[index] = line
        self._settle(FormStatus.EDITING)
        return line

    def select_product(self, client_id: UUID, product_code: str) -> LineItem:
        """Fill name, UOM and default price of a line from the product catalog."""
        self._ensure_editable("edit a line")
        self._index_of(client_id)
        entry = self._snapshot.require(CatalogKind.PRODUCTS, product_code)
        price = entry.attribute(self.schema.price_field.value)
        return self.update_line(
            client_id,
            product_code=entry.code,
            product_name=entry.name,
            uom=entry.attribute("uom") or "",
            unit_price=price if price is not None else "0",
        )

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def add_attachment(self, attachment: Attachment) -> bool:
        """Add a file unless one with the same name is already attached."""
        self._ensure_editable("attach a file")
        if any(a.filename == attachment.filename for a in self._attachments):
            return False
        self._attachments.append(attachment)
        self._settle(FormStatus.EDITING)
        return True

    def remove_attachment(self, filename: str) -> None:
        self._ensure_editable("remove a file")
        self._attachments = [a for a in self._attachments if a.filename != filename]
        self._settle(FormStatus.EDITING)

    # ------------------------------------------------------------------
    # Validation and submission
    # ------------------------------------------------------------------

    def validate(self) -> ValidationReport:
        self._ensure_editable("validate")
        self._status = FormStatus.VALIDATING
        self._report = self._validator.validate(self._header, self._lines, self._snapshot)
        self._status = FormStatus.EDITING
        return self._report

    async def submit(self, gateway: SubmissionGateway) -> SubmissionOutcome:
        """Validate, then create or update the document through the gateway.

        Validation errors and remote failures are returned in the outcome;
        in both cases every edit is preserved.
        """
        self._ensure_editable("submit")
        report = self.validate()
        if not report.is_valid:
            logger.info(
                "submission_blocked_by_validation",
                form_id=str(self.form_id),
                error_count=len(report),
            )
            return SubmissionOutcome(status=self._status, report=report)

        self._status = FormStatus.SUBMITTING
        self._last_error = None
        header, lines, totals = self._header, tuple(self._lines), self._totals
        attachments = tuple(self._attachments)

        with form_context(self.form_id, self.kind):
            logger.info("submission_started", line_count=len(lines))
            try:
                if self._document_id is None:
                    receipt = await gateway.submit(header, lines, totals, attachments)
                else:
                    receipt = await gateway.update(
                        self._document_id, header, lines, totals, attachments
                    )
            except SubmissionError as e:
                return self._submission_failed(e, report)
            except Exception as e:
                logger.exception("submission_crashed", error_type=type(e).__name__)
                error = SubmissionError(f"Failed to save {self.schema.title}: {e}")
                return self._submission_failed(error, report)

            if self._status is FormStatus.DISCARDED:
                logger.info("submission_result_ignored", outcome="accepted")
                return SubmissionOutcome(status=FormStatus.DISCARDED, receipt=receipt)

            number = receipt.document_number or self._header.document_number
            self._header = replace(self._header, document_number=number)
            self._status = FormStatus.SUBMITTED
            logger.info("submission_accepted", document_number=number)
        return SubmissionOutcome(status=FormStatus.SUBMITTED, receipt=receipt, report=report)

    def _submission_failed(
        self, e: SubmissionError, report: ValidationReport
    ) -> SubmissionOutcome:
        if self._status is FormStatus.DISCARDED:
            logger.info("submission_result_ignored", outcome="failed")
            return SubmissionOutcome(status=FormStatus.DISCARDED, error=e)
        self._status = FormStatus.SUBMISSION_FAILED
        self._last_error = e
        logger.warning(
            "submission_failed",
            error=e.error_code,
            status_code=e.status_code,
            message=e.message,
        )
        return SubmissionOutcome(
            status=FormStatus.SUBMISSION_FAILED, report=report, error=e
        )

    def discard(self) -> None:
        if self._status is FormStatus.DISCARDED:
            return
        logger.debug(
            "form_discarded", form_id=str(self.form_id), status=self._status.value
        )
        self._status = FormStatus.DISCARDED

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_line(self) -> LineItem:
        return self._calculator.recompute(
            LineItem(client_id=uuid4(), quantity=self._settings.default_line_quantity),
            self._snapshot,
        )

    def _index_of(self, client_id: UUID) -> int:
        for index, line in enumerate(self._lines):
            if line.client_id == client_id:
                return index
        raise LineNotFoundError(client_id)

    def _ensure_editable(self, operation: str) -> None:
        if self._status in _LOCKED_STATUSES:
            raise InvalidStateTransitionError(self._status.value, operation)

    def _settle(self, status: FormStatus) -> None:
        self._totals = self._aggregator.aggregate(self._lines)
        self._status = status

    def observable_state(self) -> dict[str, Any]:
        """Plain copy of everything a user can observe, for comparisons and logs."""
        return {
            "status": self._status,
            "header": self._header,
            "lines": tuple(self._lines),
            "totals": self._totals,
            "attachments": tuple(self._attachments),
            "document_id": self._document_id,
        }
