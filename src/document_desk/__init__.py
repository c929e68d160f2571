from document_desk.domain.catalog import CatalogEntry, CatalogSnapshot
from document_desk.domain.documents import (
    Attachment,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
)
from document_desk.domain.value_objects import CatalogKind, DocumentKind, FormStatus
from document_desk.services.form_state import DocumentFormState

__all__ = [
    "Attachment",
    "CatalogEntry",
    "CatalogKind",
    "CatalogSnapshot",
    "DocumentFormState",
    "DocumentHeader",
    "DocumentKind",
    "DocumentTotals",
    "FormStatus",
    "LineItem",
    "SourceDocument",
]

__version__ = "0.1.0"
