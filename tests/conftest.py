from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
import yaml

from gstr1.models.client import Client
from gstr1.models.invoice import Invoice

TODAY = date(2026, 3, 15)

HOME_STATE = "24"
CLIENT_GSTIN = "24AAACA1234B1Z5"
BUYER_GSTIN = "24AABCT1234E1Z5"
OTHER_BUYER_GSTIN = "27AAGCM5678K1Z2"


@pytest.fixture(autouse=True)
def _isolate_dirs(monkeypatch, tmp_path):
    """Point config/data dirs at tmp and pin 'today' so date checks are stable."""
    monkeypatch.setenv("GSTR1_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("GSTR1_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr("gstr1.services.validation._today", lambda: TODAY)


def make_invoice(**overrides) -> Invoice:
    """A valid intra-state B2B invoice for 02/2026, with field overrides."""
    fields = {
        "invoice_number": "INV-001",
        "invoice_date": "05-02-2026",
        "month": 2,
        "year": 2026,
        "buyer_gstin": BUYER_GSTIN,
        "buyer_name": "Tata Supplies",
        "place_of_supply": HOME_STATE,
        "invoice_value": Decimal("59000"),
        "taxable_value": Decimal("50000"),
        "tax_rate": Decimal("18"),
        "cgst_amount": Decimal("4500"),
        "sgst_amount": Decimal("4500"),
        "hsn_code": "8471",
        "description": "Laptops",
        "row_number": 1,
    }
    fields.update(overrides)
    return Invoice(**fields)


@pytest.fixture
def invoice() -> Invoice:
    return make_invoice()


@pytest.fixture
def b2cs_invoice() -> Invoice:
    return make_invoice(
        invoice_number="INV-002",
        buyer_gstin=None,
        buyer_name="Walk-in",
        invoice_value=Decimal("23600"),
        taxable_value=Decimal("20000"),
        cgst_amount=Decimal("1800"),
        sgst_amount=Decimal("1800"),
        row_number=2,
    )


@pytest.fixture
def client_dict() -> dict:
    return {
        "gstin": CLIENT_GSTIN,
        "legal_name": "ACME TRADERS PRIVATE LIMITED",
        "trade_name": "Acme Traders",
        "state_code": HOME_STATE,
        "email": "accounts@acme-traders.in",
    }


@pytest.fixture
def client(client_dict) -> Client:
    return Client.from_dict(client_dict)


@pytest.fixture
def config_dir(tmp_path, client_dict):
    cfg = tmp_path / "config"
    clients = cfg / "clients"
    clients.mkdir(parents=True)
    (clients / "acme.yaml").write_text(yaml.dump(client_dict))
    return cfg


@pytest.fixture
def invoice_file(tmp_path):
    """A YAML invoice file with one B2B and one B2CS invoice, both valid."""
    records = [
        {
            "invoice_number": "INV-001",
            "invoice_date": "05-02-2026",
            "buyer_gstin": BUYER_GSTIN,
            "buyer_name": "Tata Supplies",
            "place_of_supply": "24",
            "invoice_value": 59000,
            "taxable_value": 50000,
            "tax_rate": 18,
            "cgst_amount": 4500,
            "sgst_amount": 4500,
            "hsn_code": "8471",
            "description": "Laptops",
        },
        {
            "invoice_number": "INV-002",
            "invoice_date": "10-02-2026",
            "place_of_supply": "24",
            "invoice_value": 23600,
            "taxable_value": 20000,
            "tax_rate": 18,
            "cgst_amount": 1800,
            "sgst_amount": 1800,
            "hsn_code": "8471",
        },
    ]
    path = tmp_path / "invoices.yaml"
    path.write_text(yaml.dump(records))
    return path
