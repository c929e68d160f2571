"""Command-line interface for Document Desk.

Drafts are JSON files of the form::

    {
      "kind": "goods_receipt",
      "header": {"counterparty_code": "V001", "document_date": "2026-01-05", ...},
      "lines": [{"product_code": "P-1", "quantity": "2", "unit_price": "100.00", ...}]
    }
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from document_desk import __version__
from document_desk.client.api_client import DocumentAPIClient
from document_desk.client.wire import parse_catalog
from document_desk.config import get_settings
from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.numeric import format_amount
from document_desk.domain.schemas import get_schema
from document_desk.domain.value_objects import CatalogKind, DocumentKind
from document_desk.exceptions import DocumentDeskError, DocumentValidationError
from document_desk.logging_config import configure_logging
from document_desk.services.catalog import CatalogService
from document_desk.services.form_state import (
    EDITABLE_HEADER_FIELDS,
    EDITABLE_LINE_FIELDS,
    DocumentFormState,
)


def load_tax_snapshot(tax_file: Path) -> CatalogSnapshot:
    """Build a snapshot holding only tax codes, from a TaxDeclarations JSON dump."""
    rows = json.loads(tax_file.read_text(encoding="utf-8"))
    return CatalogSnapshot({CatalogKind.TAX_CODES: parse_catalog(CatalogKind.TAX_CODES, rows)})


def build_form(draft: dict[str, Any], snapshot: CatalogSnapshot) -> DocumentFormState:
    """Replay a draft through the normal editing operations."""
    form = DocumentFormState(DocumentKind(draft["kind"]), snapshot)
    form.seed_blank(blank_line=False)
    for name, value in (draft.get("header") or {}).items():
        if name in EDITABLE_HEADER_FIELDS:
            form.set_header_field(name, value)
    for raw_line in draft.get("lines") or []:
        line = form.add_line()
        changes = {k: v for k, v in raw_line.items() if k in EDITABLE_LINE_FIELDS}
        if changes:
            form.update_line(line.client_id, **changes)
    return form


def dump_draft(form: DocumentFormState) -> dict[str, Any]:
    header = form.header
    return {
        "kind": form.kind.value,
        "header": {
            "document_number": form.display_number,
            "counterparty_code": header.counterparty_code,
            "counterparty_name": header.counterparty_name,
            "document_date": header.document_date.isoformat() if header.document_date else None,
            "due_or_delivery_date": (
                header.due_or_delivery_date.isoformat() if header.due_or_delivery_date else None
            ),
            "counterparty_ref_number": header.counterparty_ref_number,
            "ship_or_bill_address": header.ship_or_bill_address,
            "remarks": header.remarks,
            "based_on_document_number": header.based_on_document_number,
        },
        "lines": [
            {
                "product_code": line.product_code,
                "product_name": line.product_name,
                "quantity": str(line.quantity),
                "uom": line.uom,
                "unit_price": str(line.unit_price),
                "warehouse_code": line.warehouse_code,
                "tax_code": line.tax_code,
                "tax_amount": format_amount(line.tax_amount),
                "line_total": format_amount(line.line_total),
                "source_line_id": line.source_line_ref.line_id if line.source_line_ref else None,
            }
            for line in form.lines
        ],
        "totals": form.totals.as_dict(),
    }


async def _fetch_tax_snapshot() -> CatalogSnapshot:
    async with DocumentAPIClient() as client:
        return await CatalogService(client).load_snapshot([CatalogKind.TAX_CODES])


def _load(args: argparse.Namespace) -> DocumentFormState:
    draft = json.loads(Path(args.file).read_text(encoding="utf-8"))
    if args.tax_file:
        snapshot = load_tax_snapshot(Path(args.tax_file))
    else:
        snapshot = asyncio.run(_fetch_tax_snapshot())
    return build_form(draft, snapshot)


def cmd_totals(args: argparse.Namespace) -> int:
    """Show per-line and document totals of a draft."""
    if not Path(args.file).exists():
        print(f"Error: File not found: {args.file}")
        return 1
    try:
        form = _load(args)
    except (DocumentDeskError, ValueError, KeyError) as e:
        print(f"Error: {e}")
        return 1

    print(f"{form.schema.title} {form.display_number}")
    print(f"{'Product':<16} {'Qty':>10} {'Price':>12} {'Tax':>6} {'Tax Amt':>12} {'Total':>12}")
    for line in form.lines:
        print(
            f"{line.product_code:<16} {str(line.quantity):>10} {str(line.unit_price):>12} "
            f"{line.tax_code:>6} {format_amount(line.tax_amount):>12} "
            f"{format_amount(line.line_total):>12}"
        )
    totals = form.totals
    print(f"Product Total (ex. Tax): {format_amount(totals.product_subtotal)}")
    print(f"Tax Total:               {format_amount(totals.tax_total)}")
    print(f"Grand Total:             {format_amount(totals.grand_total)}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a draft and list every problem."""
    if not Path(args.file).exists():
        print(f"Error: File not found: {args.file}")
        return 1
    try:
        form = _load(args)
        form.validate().raise_if_invalid()
    except DocumentValidationError as e:
        print("Please correct the following errors:")
        for key, message in e.report.messages().items():
            print(f"  - {key}: {message}")
        return 1
    except (DocumentDeskError, ValueError, KeyError) as e:
        print(f"Error: {e}")
        return 1

    print("Draft is valid")
    return 0


async def _derive(kind: DocumentKind, source_id: str) -> DocumentFormState:
    async with DocumentAPIClient() as client:
        snapshot = await CatalogService(client).load_for(get_schema(kind))
        form = DocumentFormState(kind, snapshot)
        form.seed_blank(blank_line=False)
        await form.load_from_source(client, source_id)
        return form


def cmd_derive(args: argparse.Namespace) -> int:
    """Seed a new document from an existing one and print it as a draft."""
    try:
        kind = DocumentKind(args.kind)
    except ValueError:
        print(f"Error: Unknown document kind: {args.kind}")
        return 1
    try:
        form = asyncio.run(_derive(kind, args.source_id))
    except DocumentDeskError as e:
        print(f"Error: {e.message}")
        return 1

    print(json.dumps(dump_draft(form), indent=2))
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"Document Desk v{__version__}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="document-desk",
        description="Document Desk - document derivation and line tax/total engine",
    )
    parser.add_argument(
        "--api-url",
        help="Base URL of the ERP service (overrides DOCDESK_API_BASE_URL)",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    kinds = [kind.value for kind in DocumentKind]

    totals_parser = subparsers.add_parser("totals", help="Show totals of a draft")
    totals_parser.add_argument("file", help="Draft JSON file")
    totals_parser.add_argument(
        "--tax-file", "-t", help="TaxDeclarations JSON file (default: fetch from API)"
    )
    totals_parser.set_defaults(func=cmd_totals)

    validate_parser = subparsers.add_parser("validate", help="Validate a draft")
    validate_parser.add_argument("file", help="Draft JSON file")
    validate_parser.add_argument(
        "--tax-file", "-t", help="TaxDeclarations JSON file (default: fetch from API)"
    )
    validate_parser.set_defaults(func=cmd_validate)

    derive_parser = subparsers.add_parser(
        "derive", help="Copy an existing document into a new draft"
    )
    derive_parser.add_argument("kind", help=f"Target document kind ({', '.join(kinds)})")
    derive_parser.add_argument("source_id", help="Id of the source document")
    derive_parser.set_defaults(func=cmd_derive)

    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    if args.api_url:
        settings.api_base_url = args.api_url.rstrip("/")
    configure_logging(settings)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
