"""Per-category GSTR-1 section builders.

Each builder takes the VALID invoices of one category and returns the
section's JSON-ready payload. Groups are emitted in sorted key order;
invoices inside a group keep the order they were given in. Amounts are
rounded only where they are summed.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from decimal import Decimal
from typing import Any, TypeVar

from gstr1.config import (
    B2CL_DEFAULT_POS,
    DEFAULT_EXPORT_TYPE,
    DEFAULT_HSN_CODE,
    HSN_UQC,
)
from gstr1.models.invoice import ZERO, Invoice
from gstr1.utils.formatters import round_amount

K = TypeVar("K", bound=Hashable)

_AMOUNT_KEYS = ("txval", "iamt", "camt", "samt", "csamt")


def _group_by(
    invoices: Iterable[Invoice], key: Callable[[Invoice], K]
) -> list[tuple[K, list[Invoice]]]:
    grouped: dict[K, list[Invoice]] = {}
    for inv in invoices:
        grouped.setdefault(key(inv), []).append(inv)
    return sorted(grouped.items(), key=lambda kv: kv[0])  # type: ignore[arg-type,return-value]


def _amounts(inv: Invoice) -> dict[str, Decimal]:
    return {
        "txval": inv.taxable_value,
        "iamt": inv.igst_amount,
        "camt": inv.cgst_amount,
        "samt": inv.sgst_amount,
        "csamt": inv.cess_amount,
    }


def _summed(invs: list[Invoice]) -> dict[str, Decimal]:
    totals = dict.fromkeys(_AMOUNT_KEYS, ZERO)
    for inv in invs:
        for k, v in _amounts(inv).items():
            totals[k] += v
    return {k: round_amount(v) for k, v in totals.items()}


def _item_detail(inv: Invoice) -> dict[str, Decimal]:
    return {"rt": inv.tax_rate, **_amounts(inv)}


def _items(inv: Invoice) -> list[dict[str, Any]]:
    return [{"num": 1, "itm_det": _item_detail(inv)}]


def _rchrg(inv: Invoice) -> str:
    return "Y" if inv.reverse_charge else "N"


def _invoice_item(inv: Invoice) -> dict[str, Any]:
    return {
        "inum": inv.invoice_number,
        "idt": inv.invoice_date,
        "val": inv.invoice_value,
        "pos": inv.place_of_supply or "",
        "rchrg": _rchrg(inv),
        "itms": _items(inv),
    }


def build_b2b(invoices: Iterable[Invoice]) -> list[dict[str, Any]]:
    """Registered-buyer invoices grouped by buyer GSTIN."""
    return [
        {"ctin": ctin, "inv": [_invoice_item(inv) for inv in invs]}
        for ctin, invs in _group_by(invoices, lambda inv: inv.buyer_gstin or "")
    ]


def build_b2cl(invoices: Iterable[Invoice]) -> list[dict[str, Any]]:
    """Large unregistered-buyer invoices grouped by place of supply."""
    return [
        {
            "pos": pos,
            "inv": [
                {
                    "inum": inv.invoice_number,
                    "idt": inv.invoice_date,
                    "val": inv.invoice_value,
                    "itms": _items(inv),
                }
                for inv in invs
            ],
        }
        for pos, invs in _group_by(invoices, lambda inv: inv.place_of_supply or B2CL_DEFAULT_POS)
    ]


def build_b2cs(invoices: Iterable[Invoice], home_state_code: str) -> list[dict[str, Any]]:
    """Small unregistered-buyer supplies summed per (supply type, pos, rate).

    Supplies without a place of supply are treated as intra-state.
    """

    def key(inv: Invoice) -> tuple[str, str, Decimal]:
        pos = inv.place_of_supply or home_state_code
        sply_ty = "INTRA" if pos == home_state_code else "INTER"
        return sply_ty, pos, inv.tax_rate

    section: list[dict[str, Any]] = []
    for (sply_ty, pos, rt), invs in _group_by(invoices, key):
        section.append(
            {
                "sply_ty": sply_ty,
                "pos": pos,
                "rt": rt,
                **_summed(invs),
            }
        )
    return section


def build_cdnr(invoices: Iterable[Invoice]) -> list[dict[str, Any]]:
    """Credit/debit notes grouped by buyer GSTIN. Notes without a GSTIN are skipped."""
    return [
        {
            "ctin": ctin,
            "nt": [
                {
                    "nt_num": inv.invoice_number,
                    "nt_dt": inv.invoice_date,
                    "ntty": "C" if inv.note_type == "CREDIT" else "D",
                    "val": inv.invoice_value,
                    "pos": inv.place_of_supply or "",
                    "rchrg": _rchrg(inv),
                    "itms": _items(inv),
                }
                for inv in invs
            ],
        }
        for ctin, invs in _group_by(
            (inv for inv in invoices if inv.buyer_gstin), lambda inv: inv.buyer_gstin or ""
        )
    ]


def build_exp(invoices: Iterable[Invoice]) -> list[dict[str, Any]]:
    """Export invoices grouped by export type. Exports carry no CGST/SGST."""
    return [
        {
            "exp_typ": exp_typ,
            "inv": [
                {
                    "exp_typ": exp_typ,
                    "inum": inv.invoice_number,
                    "idt": inv.invoice_date,
                    "val": inv.invoice_value,
                    "itms": [
                        {
                            "txval": inv.taxable_value,
                            "rt": inv.tax_rate,
                            "iamt": inv.igst_amount,
                            "csamt": inv.cess_amount,
                        }
                    ],
                }
                for inv in invs
            ],
        }
        for exp_typ, invs in _group_by(
            invoices, lambda inv: inv.export_type or DEFAULT_EXPORT_TYPE
        )
    ]


def build_hsn(invoices: Iterable[Invoice]) -> list[dict[str, Any]]:
    """HSN-wise summary across every valid invoice, whatever its category."""
    rows: list[dict[str, Any]] = []
    for hsn, invs in _group_by(invoices, lambda inv: inv.hsn_code or DEFAULT_HSN_CODE):
        rows.append(
            {
                "hsn_sc": hsn,
                "desc": invs[0].description or "",
                "uqc": HSN_UQC,
                "qty": len(invs),
                **_summed(invs),
            }
        )
    return rows
