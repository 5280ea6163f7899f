from __future__ import annotations

import pytest

from tests.conftest import make_invoice


@pytest.fixture
def clean_invoices():
    """One B2B and one B2CS invoice, both valid for 02/2026."""
    return [
        make_invoice(),
        make_invoice(invoice_number="INV-002", buyer_gstin=None, buyer_name="Walk-in", row_number=2),
    ]


@pytest.fixture
def invalid_invoices():
    """A clean invoice followed by one with a malformed HSN code."""
    return [
        make_invoice(),
        make_invoice(invoice_number="INV-002", hsn_code="12345", row_number=2),
    ]
