from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

from gstr1.models.invoice import ZERO, Category, Invoice
from gstr1.services.classifier import partition
from gstr1.services.sections import (
    build_b2b,
    build_b2cl,
    build_b2cs,
    build_cdnr,
    build_exp,
    build_hsn,
)
from gstr1.utils.formatters import format_period, round_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionCounts:
    b2b: int = 0
    b2cl: int = 0
    b2cs: int = 0
    cdnr: int = 0
    exp: int = 0
    hsn: int = 0


@dataclass(frozen=True)
class FilingMetadata:
    """Summary of a generated return, kept outside the filing document."""

    total_invoices: int
    total_taxable_value: Decimal
    total_tax: Decimal
    sections: SectionCounts = field(default_factory=SectionCounts)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def file_name_for(gstin: str, month: int, year: int) -> str:
    """Portal naming convention: {GSTIN}_{MMYYYY}_GSTR1.json."""
    return f"{gstin}_{format_period(month, year)}_GSTR1.json"


def assemble(
    client_gstin: str,
    home_state_code: str,
    month: int,
    year: int,
    valid_invoices: Sequence[Invoice],
) -> tuple[dict[str, Any], FilingMetadata, str]:
    """Compose the GSTR-1 document for a period's VALID invoices.

    Returns ``(document, metadata, file_name)``. An empty invoice list still
    yields a well-formed document with empty sections and zero totals;
    refusing empty or invalid periods is the caller's job.
    """
    buckets = partition(valid_invoices)
    hsn_rows = build_hsn(valid_invoices)

    document: dict[str, Any] = {
        "gstin": client_gstin,
        "fp": format_period(month, year),
        "b2b": build_b2b(buckets[Category.B2B]),
        "b2cl": build_b2cl(buckets[Category.B2CL]),
        "b2cs": build_b2cs(buckets[Category.B2CS], home_state_code),
        "cdnr": build_cdnr(buckets[Category.CDNR]),
        "exp": build_exp(buckets[Category.EXP]),
        "hsn": {"data": hsn_rows},
    }

    # Summed per invoice, not per section: HSN rows span every category
    total_taxable = sum((inv.taxable_value for inv in valid_invoices), ZERO)
    total_tax = sum((inv.total_tax for inv in valid_invoices), ZERO)

    metadata = FilingMetadata(
        total_invoices=len(valid_invoices),
        total_taxable_value=round_amount(total_taxable),
        total_tax=round_amount(total_tax),
        sections=SectionCounts(
            b2b=len(buckets[Category.B2B]),
            b2cl=len(buckets[Category.B2CL]),
            b2cs=len(buckets[Category.B2CS]),
            cdnr=len(buckets[Category.CDNR]),
            exp=len(buckets[Category.EXP]),
            hsn=len(hsn_rows),
        ),
    )

    file_name = file_name_for(client_gstin, month, year)
    logger.info(
        "Assembled %s: %d invoices, taxable %s, tax %s",
        file_name,
        metadata.total_invoices,
        metadata.total_taxable_value,
        metadata.total_tax,
    )
    return document, metadata, file_name
