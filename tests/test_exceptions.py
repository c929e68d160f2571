from uuid import uuid4

from document_desk.exceptions import (
    CalculationInputError,
    CatalogFetchError,
    DerivationError,
    DerivationFetchError,
    DocumentDeskError,
    FormError,
    InvalidStateTransitionError,
    LineNotFoundError,
    SubmissionError,
    UnsupportedDerivationError,
)


class TestDocumentDeskError:
    def test_to_dict(self):
        error = DocumentDeskError("Something broke", context={"a": 1})

        assert error.to_dict() == {
            "error": "DOCDESK_ERROR",
            "message": "Something broke",
            "retryable": False,
            "context": {"a": 1},
        }

    def test_custom_error_code(self):
        assert DocumentDeskError("x", error_code="CUSTOM").error_code == "CUSTOM"

    def test_hierarchy(self):
        assert issubclass(DerivationFetchError, DerivationError)
        assert issubclass(UnsupportedDerivationError, DerivationError)
        assert issubclass(InvalidStateTransitionError, FormError)
        for cls in (CalculationInputError, CatalogFetchError, SubmissionError, FormError):
            assert issubclass(cls, DocumentDeskError)


class TestRetryable:
    def test_io_errors_are_retryable(self):
        assert DerivationFetchError("Purchase Order", "1", "timeout").retryable
        assert SubmissionError("down").retryable
        assert CatalogFetchError("products", "down").retryable

    def test_form_errors_are_not(self):
        assert not LineNotFoundError(uuid4()).retryable
        assert not UnsupportedDerivationError("sales_order", None).retryable


class TestMessages:
    def test_derivation_fetch_message(self):
        error = DerivationFetchError("Purchase Order", "17", "not found")

        assert str(error) == "Failed to fetch details for Purchase Order #17: not found"
        assert error.context["source_id"] == "17"

    def test_state_transition_message(self):
        error = InvalidStateTransitionError("submitted", "add a line")

        assert error.message == "Cannot add a line while the form is submitted"

    def test_submission_error_keeps_status(self):
        error = SubmissionError("Rejected", status_code=422)

        assert error.status_code == 422
        assert error.to_dict()["context"] == {"status_code": 422}
