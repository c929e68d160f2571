"""Per-kind document configuration.

Each document-entry screen differs only in labels, the counterparty role,
the default price source, the legal source kind for "copy from", and the
field names the remote service uses. Those differences live here so the
form state and calculation code stay shared.
"""

from __future__ import annotations

from dataclasses import dataclass

from document_desk.domain.value_objects import (
    CatalogKind,
    CounterpartyRole,
    DocumentKind,
    PriceField,
)


@dataclass(frozen=True, slots=True)
class DocumentSchema:
    kind: DocumentKind
    title: str
    endpoint: str
    counterparty_role: CounterpartyRole
    price_field: PriceField
    document_date_label: str
    secondary_date_label: str
    source_kind: DocumentKind | None = None

    # Multipart field names used on create/update
    date_field: str = "DocumentDate"
    secondary_date_field: str = "DueDate"
    address_field: str = "ShipToAddress"
    remarks_field: str = "Remarks"
    based_on_field: str | None = None
    items_field: str = "ItemsJson"

    # JSON keys read from fetched documents, first present wins
    read_number_keys: tuple[str, ...] = ("documentNo",)
    read_date_keys: tuple[str, ...] = ("documentDate",)
    read_secondary_date_keys: tuple[str, ...] = ("dueDate",)
    read_address_keys: tuple[str, ...] = ("shipToAddress",)
    read_remarks_keys: tuple[str, ...] = ("remarks",)
    read_based_on_keys: tuple[str, ...] = ()
    read_items_keys: tuple[str, ...] = ("items",)

    @property
    def counterparty_catalog(self) -> CatalogKind:
        if self.counterparty_role is CounterpartyRole.VENDOR:
            return CatalogKind.VENDORS
        return CatalogKind.CUSTOMERS

    @property
    def counterparty_prefix(self) -> str:
        return self.counterparty_role.value.capitalize()

    @property
    def counterparty_code_key(self) -> str:
        return f"{self.counterparty_role.value}Code"

    @property
    def counterparty_name_key(self) -> str:
        return f"{self.counterparty_role.value}Name"

    @property
    def counterparty_ref_key(self) -> str:
        return f"{self.counterparty_role.value}RefNumber"

    @property
    def supports_derivation(self) -> bool:
        return self.source_kind is not None


PURCHASE_ORDER = DocumentSchema(
    kind=DocumentKind.PURCHASE_ORDER,
    title="Purchase Order",
    endpoint="PurchaseOrders",
    counterparty_role=CounterpartyRole.VENDOR,
    price_field=PriceField.PURCHASE,
    document_date_label="PO Date",
    secondary_date_label="Delivery Date",
    date_field="PODate",
    secondary_date_field="DeliveryDate",
    remarks_field="PurchaseRemarks",
    items_field="PurchaseItemsJson",
    read_number_keys=("purchaseOrderNo", "poNumber"),
    read_date_keys=("poDate",),
    read_secondary_date_keys=("deliveryDate",),
    read_address_keys=("shipToAddress", "address"),
    read_remarks_keys=("purchaseRemarks", "remark"),
    read_items_keys=("purchaseItems", "postingPurchaseOrderDetails"),
)

GOODS_RECEIPT = DocumentSchema(
    kind=DocumentKind.GOODS_RECEIPT,
    title="Goods Receipt PO",
    endpoint="GRPOs",
    counterparty_role=CounterpartyRole.VENDOR,
    price_field=PriceField.WHOLESALE,
    document_date_label="GRPO Date",
    secondary_date_label="Delivery Date",
    source_kind=DocumentKind.PURCHASE_ORDER,
    date_field="GRPODate",
    secondary_date_field="DeliveryDate",
    remarks_field="GRPORemarks",
    based_on_field="PurchaseOrderNo",
    items_field="GRPOItemsJson",
    read_number_keys=("grpoNo",),
    read_date_keys=("grpoDate",),
    read_secondary_date_keys=("deliveryDate",),
    read_remarks_keys=("grpoRemarks",),
    read_based_on_keys=("purchaseOrderNo",),
    read_items_keys=("grpoItems",),
)

AP_INVOICE = DocumentSchema(
    kind=DocumentKind.AP_INVOICE,
    title="A/P Invoice",
    endpoint="APInvoices",
    counterparty_role=CounterpartyRole.VENDOR,
    price_field=PriceField.WHOLESALE,
    document_date_label="Invoice Date",
    secondary_date_label="Due Date",
    source_kind=DocumentKind.PURCHASE_ORDER,
    date_field="InvoiceDate",
    address_field="BillToAddress",
    remarks_field="InvoiceRemarks",
    based_on_field="PurchaseOrderNo",
    items_field="InvoiceItemsJson",
    read_number_keys=("invoiceNo",),
    read_date_keys=("invoiceDate",),
    read_address_keys=("billToAddress",),
    read_remarks_keys=("invoiceRemarks",),
    read_based_on_keys=("purchaseOrderNo",),
    read_items_keys=("invoiceItems",),
)

AP_CREDIT_NOTE = DocumentSchema(
    kind=DocumentKind.AP_CREDIT_NOTE,
    title="A/P Credit Note",
    endpoint="APCreditNotes",
    counterparty_role=CounterpartyRole.VENDOR,
    price_field=PriceField.WHOLESALE,
    document_date_label="Credit Note Date",
    secondary_date_label="Due Date",
    source_kind=DocumentKind.GOODS_RECEIPT,
    date_field="APCreditNoteDate",
    remarks_field="APCreditNoteRemarks",
    based_on_field="BasedOnGrpoNo",
    items_field="APCreditNoteItemsJson",
    read_number_keys=("apCreditNoteNo",),
    read_date_keys=("apCreditNoteDate",),
    read_remarks_keys=("apCreditNoteRemarks",),
    read_based_on_keys=("basedOnGrpoNo",),
    read_items_keys=("apCreditNoteItems",),
)

SALES_ORDER = DocumentSchema(
    kind=DocumentKind.SALES_ORDER,
    title="Sales Order",
    endpoint="SalesOrders",
    counterparty_role=CounterpartyRole.CUSTOMER,
    price_field=PriceField.RETAIL,
    document_date_label="S.O. Date",
    secondary_date_label="Delivery Date",
    date_field="SODate",
    secondary_date_field="DeliveryDate",
    remarks_field="SalesRemarks",
    items_field="SalesItemsJson",
    read_number_keys=("salesOrderNo",),
    read_date_keys=("soDate",),
    read_secondary_date_keys=("deliveryDate",),
    read_remarks_keys=("salesRemarks",),
    read_items_keys=("salesItems",),
)

AR_INVOICE = DocumentSchema(
    kind=DocumentKind.AR_INVOICE,
    title="A/R Invoice",
    endpoint="ARInvoices",
    counterparty_role=CounterpartyRole.CUSTOMER,
    price_field=PriceField.RETAIL,
    document_date_label="Invoice Date",
    secondary_date_label="Due Date",
    source_kind=DocumentKind.SALES_ORDER,
    date_field="InvoiceDate",
    address_field="BillToAddress",
    remarks_field="InvoiceRemarks",
    based_on_field="SalesOrderNo",
    items_field="InvoiceItemsJson",
    read_number_keys=("invoiceNo",),
    read_date_keys=("invoiceDate",),
    read_address_keys=("billToAddress",),
    read_remarks_keys=("invoiceRemarks",),
    read_based_on_keys=("salesOrderNo",),
    read_items_keys=("invoiceItems",),
)

SCHEMAS: dict[DocumentKind, DocumentSchema] = {
    schema.kind: schema
    for schema in (
        PURCHASE_ORDER,
        GOODS_RECEIPT,
        AP_INVOICE,
        AP_CREDIT_NOTE,
        SALES_ORDER,
        AR_INVOICE,
    )
}


def get_schema(kind: DocumentKind | str) -> DocumentSchema:
    return SCHEMAS[DocumentKind(kind)]
