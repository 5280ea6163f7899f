from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
import yaml

from gstr1.services.exceptions import FilingRefusedError, InvoiceFileError
from gstr1.services.filing import generate, load_invoices, review, review_period, save_return
from gstr1.utils.registry import get_status
from tests.conftest import CLIENT_GSTIN, make_invoice


class TestLoadInvoices:
    def test_yaml(self, invoice_file):
        invoices = load_invoices(invoice_file, 2, 2026)
        assert [i.invoice_number for i in invoices] == ["INV-001", "INV-002"]
        assert [i.row_number for i in invoices] == [1, 2]
        assert all(i.month == 2 and i.year == 2026 for i in invoices)
        assert invoices[0].taxable_value == Decimal("50000")
        assert invoices[1].buyer_gstin is None

    def test_json_with_column_headings(self, tmp_path):
        path = tmp_path / "upload.json"
        path.write_text(
            json.dumps(
                {
                    "invoices": [
                        {
                            "Invoice Number": "INV-9",
                            "Invoice Date": "05-02-2026",
                            "Buyer GSTIN": "24AABCT1234E1Z5",
                            "Taxable Value": "1000.50",
                            "Tax Rate": 5,
                            "HSN Code": 1006,
                            "Note Type": "debit",
                        }
                    ]
                }
            )
        )
        (inv,) = load_invoices(path, 2, 2026)
        assert inv.invoice_number == "INV-9"
        assert inv.buyer_gstin == "24AABCT1234E1Z5"
        assert inv.taxable_value == Decimal("1000.50")
        assert inv.hsn_code == "1006"
        assert inv.note_type == "DEBIT"

    def test_explicit_row_number_kept(self, tmp_path):
        path = tmp_path / "i.yaml"
        path.write_text(yaml.dump([{"invoice_number": "A", "row_number": 12}]))
        assert load_invoices(path, 2, 2026)[0].row_number == 12

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvoiceFileError, match="Cannot read"):
            load_invoices(tmp_path / "nope.yaml", 2, 2026)

    def test_bad_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[{")
        with pytest.raises(InvoiceFileError, match="Cannot read"):
            load_invoices(path, 2, 2026)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "i.yaml"
        path.write_text("just: a mapping\n")
        with pytest.raises(InvoiceFileError, match="expected a list"):
            load_invoices(path, 2, 2026)

    def test_record_not_mapping(self, tmp_path):
        path = tmp_path / "i.yaml"
        path.write_text("- INV-1\n")
        with pytest.raises(InvoiceFileError, match="record 1"):
            load_invoices(path, 2, 2026)

    def test_bad_amount(self, tmp_path):
        path = tmp_path / "i.yaml"
        path.write_text(yaml.dump([{"invoice_number": "A", "taxable_value": "ten"}]))
        with pytest.raises(InvoiceFileError, match="record 1"):
            load_invoices(path, 2, 2026)

    @pytest.mark.parametrize("amount", [".nan", ".inf", "-.inf"])
    def test_non_finite_amount(self, tmp_path, amount):
        path = tmp_path / "i.yaml"
        path.write_text(f"- invoice_number: A\n  taxable_value: {amount}\n")
        with pytest.raises(InvoiceFileError, match="record 1"):
            load_invoices(path, 2, 2026)


class TestReview:
    def test_review(self, invoice, b2cs_invoice):
        result = review([invoice, b2cs_invoice])
        assert result.valid_count == 2

    def test_review_period_records_data_received(self, invoice):
        review_period("acme", 2, 2026, [invoice])
        assert get_status("acme", 2, 2026)["gstr1_status"] == "DATA_RECEIVED"

    def test_review_period_records_errors(self):
        review_period("acme", 2, 2026, [make_invoice(hsn_code="12")])
        assert get_status("acme", 2, 2026)["gstr1_status"] == "VALIDATION_ERRORS"

    def test_warnings_only_is_data_received(self):
        review_period("acme", 2, 2026, [make_invoice(invoice_date="28-01-2026")])
        assert get_status("acme", 2, 2026)["gstr1_status"] == "DATA_RECEIVED"

    def test_ledger_failure_does_not_break_review(self, invoice):
        with patch("gstr1.services.filing.record_status", side_effect=OSError("disk full")):
            result = review_period("acme", 2, 2026, [invoice])
        assert result.valid_count == 1


class TestGenerate:
    def test_success(self, config_dir, invoice, b2cs_invoice):
        generated = generate("acme", 2, 2026, [invoice, b2cs_invoice])
        assert generated.file_name == f"{CLIENT_GSTIN}_022026_GSTR1.json"
        assert generated.client.gstin == CLIENT_GSTIN
        assert generated.metadata.total_invoices == 2
        parsed = json.loads(generated.content)
        assert parsed["gstin"] == CLIENT_GSTIN
        assert parsed["fp"] == "022026"

        entry = get_status("acme", 2, 2026)
        assert entry["gstr1_status"] == "JSON_GENERATED"
        assert entry["file_name"] == generated.file_name
        assert entry["summary"]["total_invoices"] == 2
        assert entry["summary"]["total_taxable_value"] == 70000

    def test_refused_when_invalid(self, config_dir, invoice):
        bad = make_invoice(invoice_number="INV-009", hsn_code="12345", row_number=2)
        with pytest.raises(FilingRefusedError, match="1 invoice\\(s\\) have validation errors") as e:
            generate("acme", 2, 2026, [invoice, bad])
        assert e.value.review is not None
        assert e.value.review.invalid_count == 1
        assert get_status("acme", 2, 2026)["gstr1_status"] == "VALIDATION_ERRORS"

    def test_refused_when_empty(self, config_dir):
        with pytest.raises(FilingRefusedError, match="No validated invoices"):
            generate("acme", 2, 2026, [])

    def test_warnings_do_not_block(self, config_dir):
        generated = generate("acme", 2, 2026, [make_invoice(invoice_date="28-01-2026")])
        assert generated.review.warning_count == 1
        assert generated.metadata.sections.b2b == 1

    def test_bad_client_gstin(self, config_dir, client_dict):
        client_dict["gstin"] = "24AAACA1234B1Y5"
        (config_dir / "clients" / "acme.yaml").write_text(yaml.dump(client_dict))
        with pytest.raises(ValueError, match="Invalid GSTIN"):
            generate("acme", 2, 2026, [make_invoice()])

    def test_missing_client(self, config_dir):
        with pytest.raises(FileNotFoundError):
            generate("nobody", 2, 2026, [make_invoice()])


class TestSaveReturn:
    def test_default_location(self, config_dir, invoice, tmp_path):
        generated = generate("acme", 2, 2026, [invoice])
        path = save_return(generated)
        assert path == tmp_path / "data" / "returns" / generated.file_name
        assert path.read_bytes() == generated.content
        assert not path.with_name(f"{path.name}.tmp").exists()

    def test_explicit_output(self, config_dir, invoice, tmp_path):
        generated = generate("acme", 2, 2026, [invoice])
        out = tmp_path / "out" / "return.json"
        assert save_return(generated, out) == out
        assert json.loads(out.read_bytes())["gstin"] == CLIENT_GSTIN

    def test_output_without_suffix(self, config_dir, invoice, tmp_path):
        generated = generate("acme", 2, 2026, [invoice])
        out = tmp_path / "gstr1-feb"
        save_return(generated, out)
        assert out.read_bytes() == generated.content
        assert sorted(p.name for p in tmp_path.iterdir() if p.name.startswith("gstr1-feb")) == [
            "gstr1-feb"
        ]

    def test_failed_replace_leaves_no_temp(self, config_dir, invoice, tmp_path):
        generated = generate("acme", 2, 2026, [invoice])
        out = tmp_path / "out" / "return.json"
        with (
            patch("gstr1.utils.atomic.os.replace", side_effect=OSError("disk full")),
            pytest.raises(OSError, match="disk full"),
        ):
            save_return(generated, out)
        assert list((tmp_path / "out").iterdir()) == []
