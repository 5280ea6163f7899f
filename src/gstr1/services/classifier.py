from __future__ import annotations

from collections.abc import Iterable

from gstr1.config import B2CL_THRESHOLD
from gstr1.models.invoice import Category, Invoice
from gstr1.utils.validators import is_well_formed_gstin

NOTE_TYPES = frozenset({"CREDIT", "DEBIT"})


def classify(invoice: Invoice) -> Category:
    """Return the GSTR-1 category for an invoice.

    First match wins: notes, exports, registered buyers, large B2C,
    then small B2C as the fallback.
    """
    if invoice.note_type in NOTE_TYPES:
        return Category.CDNR
    if invoice.export_type:
        return Category.EXP
    if is_well_formed_gstin(invoice.buyer_gstin):
        return Category.B2B
    if not invoice.buyer_gstin and invoice.taxable_value > B2CL_THRESHOLD:
        return Category.B2CL
    return Category.B2CS


def partition(invoices: Iterable[Invoice]) -> dict[Category, list[Invoice]]:
    """Split invoices into per-category buckets, preserving input order."""
    buckets: dict[Category, list[Invoice]] = {c: [] for c in Category}
    for inv in invoices:
        buckets[classify(inv)].append(inv)
    return buckets
