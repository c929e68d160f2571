from document_desk.services.aggregator import DocumentAggregator
from document_desk.services.catalog import CatalogService, catalogs_for
from document_desk.services.derivation import DerivationMapper, DerivationSeed
from document_desk.services.form_state import DocumentFormState, SubmissionOutcome
from document_desk.services.interfaces import (
    ReferenceCatalogAdapter,
    SourceDocumentAdapter,
    SubmissionGateway,
)
from document_desk.services.line_calculator import (
    RECALCULATION_FIELDS,
    LineCalculator,
    line_base,
)
from document_desk.services.tax import TaxResolution, TaxResolver
from document_desk.services.validation import FieldError, ValidationReport, Validator

__all__ = [
    "CatalogService",
    "DerivationMapper",
    "DerivationSeed",
    "DocumentAggregator",
    "DocumentFormState",
    "FieldError",
    "LineCalculator",
    "RECALCULATION_FIELDS",
    "ReferenceCatalogAdapter",
    "SourceDocumentAdapter",
    "SubmissionGateway",
    "SubmissionOutcome",
    "TaxResolution",
    "TaxResolver",
    "ValidationReport",
    "Validator",
    "catalogs_for",
    "line_base",
]
