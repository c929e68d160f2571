"""Tests for CLI module."""

import json

import pytest

from document_desk import cli
from document_desk.cli import (
    build_form,
    cmd_derive,
    cmd_totals,
    cmd_validate,
    cmd_version,
    dump_draft,
    load_tax_snapshot,
    main,
)
from document_desk.domain.value_objects import CatalogKind, DocumentKind
from document_desk.exceptions import DerivationFetchError
from document_desk.services.derivation import DerivationMapper


@pytest.fixture
def draft() -> dict:
    return {
        "kind": "goods_receipt",
        "header": {
            "counterparty_code": "V001",
            "counterparty_name": "Acme Supplies",
            "document_date": "2026-01-05",
            "due_or_delivery_date": "2026-01-10",
            "line_total": "ignored",
        },
        "lines": [
            {
                "product_code": "P-100",
                "quantity": "2",
                "unit_price": "100.00",
                "uom": "EA",
                "warehouse_code": "WH1",
                "tax_code": "GST18",
                "line_total": "999",
            }
        ],
    }


@pytest.fixture
def tax_file(tmp_path):
    path = tmp_path / "taxes.json"
    path.write_text(
        json.dumps(
            [
                {"taxCode": "GST18", "taxDescription": "GST 18%", "totalPercentage": 18},
                {"taxCode": "GST5", "taxDescription": "GST 5%", "totalPercentage": 5},
            ]
        )
    )
    return path


def _args(file, tax_file=None):
    class Args:
        pass

    args = Args()
    args.file = str(file)
    args.tax_file = str(tax_file) if tax_file else None
    return args


class TestLoadTaxSnapshot:
    def test_reads_tax_declarations(self, tax_file):
        snapshot = load_tax_snapshot(tax_file)

        assert [e.code for e in snapshot.entries(CatalogKind.TAX_CODES)] == ["GST18", "GST5"]


class TestBuildForm:
    def test_replays_draft(self, draft, snapshot):
        form = build_form(draft, snapshot)

        assert form.kind is DocumentKind.GOODS_RECEIPT
        assert form.header.counterparty_name == "Acme Supplies"
        assert len(form.lines) == 1
        assert form.totals.grand_total == form.lines[0].line_total

    def test_dump_draft(self, draft, snapshot):
        dumped = dump_draft(build_form(draft, snapshot))

        assert dumped["header"]["document_number"] == "(generated on save)"
        assert dumped["header"]["document_date"] == "2026-01-05"
        assert dumped["lines"][0]["line_total"] == "236.00"
        assert dumped["lines"][0]["source_line_id"] is None
        assert dumped["totals"] == {
            "product_subtotal": "200.00",
            "tax_total": "36.00",
            "grand_total": "236.00",
        }


class TestCmdTotals:
    def test_prints_totals(self, tmp_path, tax_file, draft, capsys):
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_totals(_args(path, tax_file))

        assert result == 0
        out = capsys.readouterr().out
        assert "Goods Receipt PO (generated on save)" in out
        assert "Tax Total:               36.00" in out
        assert "Grand Total:             236.00" in out

    def test_numeric_json_values(self, tmp_path, tax_file, draft, capsys):
        draft["lines"][0].update(quantity=2, unit_price=100, tax_code=18, warehouse_code=1)
        draft["header"]["remarks"] = 7
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_totals(_args(path, tax_file))

        assert result == 0
        out = capsys.readouterr().out
        assert "Tax Total:               0.00" in out
        assert "Grand Total:             200.00" in out

    def test_missing_file(self, tmp_path, capsys):
        result = cmd_totals(_args(tmp_path / "nope.json"))

        assert result == 1
        assert "File not found" in capsys.readouterr().out

    def test_unknown_kind(self, tmp_path, tax_file, draft, capsys):
        path = tmp_path / "draft.json"
        path.write_text(json.dumps({**draft, "kind": "quotation"}))

        result = cmd_totals(_args(path, tax_file))

        assert result == 1
        assert "Error:" in capsys.readouterr().out

    def test_fetches_taxes_when_no_file_given(
        self, tmp_path, draft, snapshot, monkeypatch, capsys
    ):
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        async def fake_fetch():
            return snapshot

        monkeypatch.setattr(cli, "_fetch_tax_snapshot", fake_fetch)

        result = cmd_totals(_args(path))

        assert result == 0
        assert "236.00" in capsys.readouterr().out


class TestCmdValidate:
    def test_valid_draft(self, tmp_path, tax_file, draft, capsys):
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_validate(_args(path, tax_file))

        assert result == 0
        assert "Draft is valid" in capsys.readouterr().out

    def test_lists_every_error(self, tmp_path, tax_file, draft, capsys):
        draft["header"]["due_or_delivery_date"] = "2026-01-01"
        draft["lines"][0]["quantity"] = "0"
        draft["lines"][0]["tax_code"] = "VAT99"
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_validate(_args(path, tax_file))

        assert result == 1
        out = capsys.readouterr().out
        assert "Delivery Date cannot be before GRPO Date." in out
        assert "Quantity must be > 0." in out
        assert "Tax code 'VAT99' is not an active tax code." in out

    def test_no_lines(self, tmp_path, tax_file, draft, capsys):
        draft["lines"] = []
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_validate(_args(path, tax_file))

        assert result == 1
        assert "lines: At least one item must be added." in capsys.readouterr().out

    def test_malformed_date(self, tmp_path, tax_file, draft, capsys):
        draft["header"]["document_date"] = "05/01/2026"
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(draft))

        result = cmd_validate(_args(path, tax_file))

        assert result == 1
        assert "Invalid value for document_date" in capsys.readouterr().out


class TestCmdDerive:
    def test_prints_seeded_draft(self, make_form, purchase_order, snapshot, monkeypatch, capsys):
        async def fake_derive(kind, source_id):
            seed = DerivationMapper().derive_from(purchase_order, snapshot, target_kind=kind)
            form = make_form(kind)
            form.seed_existing(source_id, seed.header, seed.lines)
            return form

        monkeypatch.setattr(cli, "_derive", fake_derive)

        class Args:
            kind = "goods_receipt"
            source_id = "17"

        result = cmd_derive(Args())

        assert result == 0
        dumped = json.loads(capsys.readouterr().out)
        assert dumped["kind"] == "goods_receipt"
        assert dumped["header"]["based_on_document_number"] == "PO-0017"
        assert [line["source_line_id"] for line in dumped["lines"]] == ["1", "2"]
        assert dumped["totals"]["grand_total"] == "266.00"

    def test_unknown_kind(self, capsys):
        class Args:
            kind = "quotation"
            source_id = "1"

        assert cmd_derive(Args()) == 1
        assert "Unknown document kind: quotation" in capsys.readouterr().out

    def test_fetch_failure(self, monkeypatch, capsys):
        async def failing_derive(kind, source_id):
            raise DerivationFetchError("Purchase Order", source_id, "not found")

        monkeypatch.setattr(cli, "_derive", failing_derive)

        class Args:
            kind = "goods_receipt"
            source_id = "404"

        assert cmd_derive(Args()) == 1
        assert (
            "Error: Failed to fetch details for Purchase Order #404: not found"
            in capsys.readouterr().out
        )


class TestCmdVersion:
    def test_prints_version(self, capsys):
        class Args:
            pass

        assert cmd_version(Args()) == 0
        assert "Document Desk v0.1.0" in capsys.readouterr().out


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: document-desk" in capsys.readouterr().out

    def test_dispatches_subcommand(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "configure_logging", lambda settings: None)

        assert main(["version"]) == 0
        assert "Document Desk v" in capsys.readouterr().out

    def test_api_url_override(self, monkeypatch):
        monkeypatch.setattr(cli, "configure_logging", lambda settings: None)

        main(["--api-url", "https://erp.example.com/api/", "version"])

        assert cli.get_settings().api_base_url == "https://erp.example.com/api"
