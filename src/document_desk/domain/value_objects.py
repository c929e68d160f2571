from enum import Enum


class DocumentKind(str, Enum):
    PURCHASE_ORDER = "purchase_order"
    GOODS_RECEIPT = "goods_receipt"
    AP_INVOICE = "ap_invoice"
    AP_CREDIT_NOTE = "ap_credit_note"
    SALES_ORDER = "sales_order"
    AR_INVOICE = "ar_invoice"


class CatalogKind(str, Enum):
    VENDORS = "vendors"
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    UOMS = "uoms"
    WAREHOUSES = "warehouses"
    TAX_CODES = "tax_codes"


class CounterpartyRole(str, Enum):
    VENDOR = "vendor"
    CUSTOMER = "customer"


class PriceField(str, Enum):
    """Product catalog attribute used as the default unit price."""

    PURCHASE = "purchasePrice"
    WHOLESALE = "wholesalePrice"
    RETAIL = "retailPrice"


class FormStatus(str, Enum):
    EMPTY = "empty"
    SEEDED = "seeded"
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    SUBMISSION_FAILED = "submission_failed"
    DISCARDED = "discarded"

    @property
    def is_terminal(self) -> bool:
        return self in (FormStatus.SUBMITTED, FormStatus.DISCARDED)


class TaxResolutionStatus(str, Enum):
    BLANK = "blank"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"


class ValidationCode(str, Enum):
    REQUIRED = "required"
    DATE_ORDER = "date_order"
    NO_LINES = "no_lines"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_PRICE = "invalid_price"
    UNKNOWN_TAX_CODE = "unknown_tax_code"
    OUT_OF_RANGE = "out_of_range"
