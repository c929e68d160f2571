"""Exception hierarchy for Document Desk.

All domain-specific exceptions inherit from DocumentDeskError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.

CalculationInputError is raised only by the strict parser; line arithmetic
goes through calculation_value, which treats unusable input as zero.
LookupNotFoundError comes from explicit catalog selections. I/O-layer errors
(CatalogFetchError, DerivationFetchError, SubmissionError) are surfaced to
the caller as retryable notices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from document_desk.services.validation import ValidationReport


class DocumentDeskError(Exception):
    """Base exception for all Document Desk errors.

    Includes an error_code for notices shown to the user and extra context.
    """

    error_code: str = "DOCDESK_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for notices and logs."""
        return {
            "error": self.error_code,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context,
        }


# =============================================================================
# Calculation Errors
# =============================================================================


class CalculationInputError(DocumentDeskError):
    """Raised when a quantity or price is not a usable number."""

    error_code = "CALCULATION_INPUT"

    def __init__(self, value: Any, reason: str = "not a number") -> None:
        super().__init__(
            f"Invalid numeric input {value!r}: {reason}",
            context={"value": repr(value), "reason": reason},
        )


class LookupNotFoundError(DocumentDeskError):
    """Raised when a code is not present in the reference catalog."""

    error_code = "LOOKUP_NOT_FOUND"

    def __init__(self, kind: str, code: str) -> None:
        super().__init__(
            f"No active {kind} entry with code {code!r}",
            context={"kind": kind, "code": code},
        )


class CatalogFetchError(DocumentDeskError):
    """Raised when a reference catalog cannot be fetched."""

    error_code = "CATALOG_FETCH_FAILED"
    retryable = True

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(
            f"Error loading {kind}: {reason}",
            context={"kind": kind, "reason": reason},
        )


# =============================================================================
# Derivation Errors
# =============================================================================


class DerivationError(DocumentDeskError):
    """Base exception for derivation errors."""

    error_code = "DERIVATION_ERROR"


class DerivationFetchError(DerivationError):
    """Raised when the source document of a derivation cannot be fetched."""

    error_code = "DERIVATION_FETCH_FAILED"
    retryable = True

    def __init__(self, source_kind: str, source_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to fetch details for {source_kind} #{source_id}: {reason}",
            context={
                "source_kind": source_kind,
                "source_id": source_id,
                "reason": reason,
            },
        )


class UnsupportedDerivationError(DerivationError):
    """Raised when a target kind cannot be derived from the given source kind."""

    error_code = "UNSUPPORTED_DERIVATION"

    def __init__(self, target_kind: str, source_kind: str | None) -> None:
        super().__init__(
            f"A {target_kind} cannot be based on {source_kind or 'another document'}",
            context={"target_kind": target_kind, "source_kind": source_kind},
        )


# =============================================================================
# Form Errors
# =============================================================================


class FormError(DocumentDeskError):
    """Base exception for document form errors."""

    error_code = "FORM_ERROR"


class InvalidStateTransitionError(FormError):
    """Raised when an operation is not allowed in the form's current state."""

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(self, status: str, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} while the form is {status}",
            context={"status": status, "operation": operation},
        )


class LineNotFoundError(FormError):
    """Raised when a line cannot be found by its client id."""

    error_code = "LINE_NOT_FOUND"

    def __init__(self, client_id: UUID | str) -> None:
        super().__init__(
            f"Line not found: {client_id}",
            context={"client_id": str(client_id)},
        )


class ReadOnlyFieldError(FormError):
    """Raised when an edit targets a derived or unknown field."""

    error_code = "READ_ONLY_FIELD"

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"Field cannot be edited: {field_name}",
            context={"field": field_name},
        )


class InvalidFieldValueError(FormError):
    """Raised when a header value cannot be interpreted (e.g. a malformed date)."""

    error_code = "INVALID_FIELD_VALUE"

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(
            f"Invalid value for {field_name}: {value!r}",
            context={"field": field_name, "value": repr(value)},
        )


class DocumentValidationError(FormError):
    """Raised when a document fails validation and the caller asked to fail."""

    error_code = "VALIDATION_FAILED"

    def __init__(self, report: ValidationReport) -> None:
        super().__init__(
            f"Document has {len(report)} validation error(s)",
            context={"errors": report.messages()},
        )
        self.report = report


# =============================================================================
# Submission Errors
# =============================================================================


class SubmissionError(DocumentDeskError):
    """Raised when the remote service rejects or fails a submission."""

    error_code = "SUBMISSION_FAILED"
    retryable = True

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, context={"status_code": status_code})
        self.status_code = status_code
