"""Pydantic v2 models for the remote ERP service's JSON and form payloads.

The service is not consistent about field names across endpoints
(``quantity``/``qty``, ``uom``/``uomCode``, ``warehouseLocation``/``locationCode``),
so incoming models accept every spelling seen in practice.
"""

from __future__ import annotations

import json
from abc import abstractmethod
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from document_desk.domain.catalog import CatalogEntry
from document_desk.domain.documents import (
    DocumentHeader,
    DocumentTotals,
    LineItem,
    SourceDocument,
    SourceLine,
    SubmissionReceipt,
)
from document_desk.domain.numeric import calculation_value
from document_desk.domain.schemas import DocumentSchema
from document_desk.domain.value_objects import CatalogKind, PriceField


class _Incoming(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class _CatalogRow(_Incoming):
    # isActive is sometimes null; only an explicit false hides a row
    is_active: bool | None = Field(
        default=None, validation_alias=AliasChoices("isActive", "active")
    )

    @property
    def active(self) -> bool:
        return self.is_active is not False

    @abstractmethod
    def to_entry(self) -> CatalogEntry: ...


# =============================================================================
# Catalog rows
# =============================================================================


class TaxCodeRow(_CatalogRow):
    tax_code: str = Field(validation_alias=AliasChoices("taxCode", "code"))
    description: str = Field(
        default="", validation_alias=AliasChoices("taxDescription", "description")
    )
    total_percentage: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("totalPercentage", "ratePercent")
    )

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            code=self.tax_code,
            name=self.description,
            rate_percent=self.total_percentage,
            active=self.active,
        )


class ProductRow(_CatalogRow):
    sku: str = Field(validation_alias=AliasChoices("sku", "productCode", "code"))
    name: str = ""
    uom: str | None = None
    purchase_price: Decimal | None = Field(default=None, alias="purchasePrice")
    wholesale_price: Decimal | None = Field(default=None, alias="wholesalePrice")
    retail_price: Decimal | None = Field(default=None, alias="retailPrice")

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            code=self.sku,
            name=self.name,
            active=self.active,
            attributes={
                "uom": self.uom or "",
                PriceField.PURCHASE.value: self.purchase_price,
                PriceField.WHOLESALE.value: self.wholesale_price,
                PriceField.RETAIL.value: self.retail_price,
            },
        )


class PartyRow(_CatalogRow):
    code: str = Field(validation_alias=AliasChoices("code", "cardCode"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "cardName"))
    address1: str | None = None
    address2: str | None = None
    street: str | None = None
    city: str | None = None

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            code=self.code,
            name=self.name,
            active=self.active,
            attributes={
                "address1": self.address1,
                "address2": self.address2,
                "street": self.street,
                "city": self.city,
            },
        )


class UomRow(_CatalogRow):
    name: str = Field(validation_alias=AliasChoices("name", "code"))

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(code=self.name, name=self.name, active=self.active)


class WarehouseRow(_CatalogRow):
    code: str
    name: str = ""

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(code=self.code, name=self.name, active=self.active)


_ROW_MODELS: dict[CatalogKind, type[_CatalogRow]] = {
    CatalogKind.VENDORS: PartyRow,
    CatalogKind.CUSTOMERS: PartyRow,
    CatalogKind.PRODUCTS: ProductRow,
    CatalogKind.UOMS: UomRow,
    CatalogKind.WAREHOUSES: WarehouseRow,
    CatalogKind.TAX_CODES: TaxCodeRow,
}


def parse_catalog(kind: CatalogKind, payload: Any) -> list[CatalogEntry]:
    """Parse a catalog listing. Raises pydantic.ValidationError or TypeError."""
    if not isinstance(payload, list):
        raise TypeError(f"expected a list of {kind.value}, got {type(payload).__name__}")
    model = _ROW_MODELS[kind]
    return [model.model_validate(row).to_entry() for row in payload]


# =============================================================================
# Source documents
# =============================================================================


class RemoteLine(_Incoming):
    line_id: str | int | None = Field(
        default=None, validation_alias=AliasChoices("id", "lineId", "slNo")
    )
    product_code: str = Field(
        default="", validation_alias=AliasChoices("productCode", "itemCode")
    )
    product_name: str = Field(default="", alias="productName")
    quantity: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("quantity", "qty")
    )
    uom: str | None = Field(default="", validation_alias=AliasChoices("uom", "uomCode"))
    price: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("price", "unitPrice")
    )
    warehouse: str | None = Field(
        default="",
        validation_alias=AliasChoices(
            "warehouseLocation", "locationCode", "warehouseCode"
        ),
    )
    tax_code: str | None = Field(default="", alias="taxCode")

    def to_source_line(self, position: int) -> SourceLine:
        return SourceLine(
            line_id=str(self.line_id) if self.line_id is not None else str(position),
            product_code=self.product_code,
            product_name=self.product_name,
            quantity=self.quantity,
            uom=self.uom or "",
            unit_price=self.price,
            warehouse_code=self.warehouse or "",
            tax_code=self.tax_code or "",
        )


def _first(payload: Mapping[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return default


def parse_date(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD``, ``YYYY-MM-DDTHH:MM:SS`` or compact ``YYYYMMDD``."""
    if not value:
        return None
    text = str(value).split("T")[0].strip()
    if len(text) == 8 and text.isdigit():
        text = f"{text[:4]}-{text[4:6]}-{text[6:]}"
    return date.fromisoformat(text)


def parse_source_document(
    schema: DocumentSchema, payload: Any, document_id: str | None = None
) -> SourceDocument:
    """Map a fetched document onto the shared SourceDocument shape."""
    if not isinstance(payload, Mapping):
        raise TypeError(f"expected a {schema.title} object, got {type(payload).__name__}")

    raw_lines = _first(payload, schema.read_items_keys, default=[])
    lines = tuple(
        RemoteLine.model_validate(row).to_source_line(position)
        for position, row in enumerate(raw_lines, start=1)
    )
    number = _first(payload, schema.read_number_keys, default="")
    identifier = document_id if document_id is not None else payload.get("id", number)

    return SourceDocument(
        kind=schema.kind,
        document_id=str(identifier),
        document_number=str(number),
        counterparty_code=_first(payload, (schema.counterparty_code_key,), ""),
        counterparty_name=_first(payload, (schema.counterparty_name_key,), ""),
        document_date=parse_date(_first(payload, schema.read_date_keys)),
        due_or_delivery_date=parse_date(_first(payload, schema.read_secondary_date_keys)),
        counterparty_ref_number=_first(payload, (schema.counterparty_ref_key,), ""),
        ship_or_bill_address=_first(payload, schema.read_address_keys, ""),
        remarks=_first(payload, schema.read_remarks_keys, ""),
        based_on_document_number=_first(payload, schema.read_based_on_keys),
        lines=lines,
    )


# =============================================================================
# Outgoing payloads
# =============================================================================


class WireLine(BaseModel):
    """One item of the ``...ItemsJson`` form field."""

    model_config = ConfigDict(populate_by_name=True)

    product_code: str = Field(serialization_alias="ProductCode")
    product_name: str = Field(serialization_alias="ProductName")
    quantity: float = Field(serialization_alias="Quantity")
    uom: str = Field(serialization_alias="UOM")
    price: float = Field(serialization_alias="Price")
    warehouse_location: str = Field(serialization_alias="WarehouseLocation")
    tax_code: str = Field(serialization_alias="TaxCode")
    tax_price: float = Field(serialization_alias="TaxPrice")
    total: float = Field(serialization_alias="Total")
    base_line_id: str | None = Field(default=None, serialization_alias="BaseLineId")

    @classmethod
    def from_line(cls, line: LineItem) -> WireLine:
        return cls(
            product_code=line.product_code,
            product_name=line.product_name,
            quantity=float(calculation_value(line.quantity)),
            uom=line.uom,
            price=float(calculation_value(line.unit_price)),
            warehouse_location=line.warehouse_code,
            tax_code=line.tax_code,
            tax_price=float(line.tax_amount),
            total=float(line.line_total),
            base_line_id=line.source_line_ref.line_id if line.source_line_ref else None,
        )


def encode_form_fields(
    schema: DocumentSchema,
    header: DocumentHeader,
    lines: Sequence[LineItem],
    totals: DocumentTotals,
) -> dict[str, str]:
    """Multipart text fields for a create or update call."""
    prefix = schema.counterparty_prefix
    fields: dict[str, str] = {
        f"{prefix}Code": header.counterparty_code,
        f"{prefix}Name": header.counterparty_name,
        f"{prefix}RefNumber": header.counterparty_ref_number,
        schema.address_field: header.ship_or_bill_address,
        schema.remarks_field: header.remarks,
        "ProductTotal": f"{totals.product_subtotal:.2f}",
        "TaxTotal": f"{totals.tax_total:.2f}",
        "NetTotal": f"{totals.grand_total:.2f}",
    }
    if schema.based_on_field is not None:
        fields[schema.based_on_field] = header.based_on_document_number or ""
    if header.document_date is not None:
        fields[schema.date_field] = header.document_date.isoformat()
    if header.due_or_delivery_date is not None:
        fields[schema.secondary_date_field] = header.due_or_delivery_date.isoformat()

    items = [
        WireLine.from_line(line).model_dump(by_alias=True, exclude_none=True)
        for line in lines
    ]
    fields[schema.items_field] = json.dumps(items)
    return fields


def parse_receipt(schema: DocumentSchema, payload: Any) -> SubmissionReceipt:
    if not isinstance(payload, Mapping):
        return SubmissionReceipt(document_number=None, message=str(payload or ""))
    number = _first(
        payload,
        (*schema.read_number_keys, "documentNumber", "docNum", "DocNum", "id"),
    )
    return SubmissionReceipt(
        document_number=str(number) if number not in (None, "") else None,
        message=str(payload.get("message", "")),
        raw=dict(payload),
    )
