from document_desk.domain.catalog import CatalogEntry, CatalogSnapshot
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
    SourceLine,
    SourceLineRef,
    SubmissionReceipt,
)
from document_desk.domain.numeric import (
    calculation_value,
    parse_decimal,
    round2,
    try_parse_decimal,
)
from document_desk.domain.schemas import SCHEMAS, DocumentSchema, get_schema
from document_desk.domain.value_objects import (
    CatalogKind,
    CounterpartyRole,
    DocumentKind,
    FormStatus,
    PriceField,
    TaxResolutionStatus,
    ValidationCode,
)

__all__ = [
    "Attachment",
    "CatalogEntry",
    "CatalogKind",
    "CatalogSnapshot",
    "CounterpartyRole",
    "DocumentHeader",
    "DocumentKind",
    "DocumentSchema",
    "DocumentTotals",
    "FormStatus",
    "LineItem",
    "PriceField",
    "SCHEMAS",
    "SourceDocument",
    "SourceLine",
    "SourceLineRef",
    "SubmissionReceipt",
    "TaxResolutionStatus",
    "ValidationCode",
    "calculation_value",
    "get_schema",
    "parse_decimal",
    "round2",
    "try_parse_decimal",
]
