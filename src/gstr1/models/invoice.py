from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import StrEnum

ZERO = Decimal("0")


class Category(StrEnum):
    """GSTR-1 transaction category an invoice is reported under."""

    B2B = "B2B"
    B2CL = "B2CL"
    B2CS = "B2CS"
    CDNR = "CDNR"
    EXP = "EXP"


def to_decimal(value: object) -> Decimal:
    """Coerce a numeric input to Decimal. None and blank strings become 0."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Numeric value expected, got {value!r}")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    else:
        # str() keeps the shortest float repr, so 0.1 stays 0.1
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            d = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid numeric value: {value!r}") from None
    if not d.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")
    return d


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().upper() in ("Y", "YES", "TRUE", "1")
    return bool(value)


@dataclass(frozen=True)
class Invoice:
    """One outward-supply invoice line for a filing period."""

    invoice_number: str
    invoice_date: str  # DD-MM-YYYY
    month: int
    year: int
    buyer_gstin: str | None = None
    buyer_name: str | None = None
    place_of_supply: str | None = None
    reverse_charge: bool = False
    invoice_value: Decimal = ZERO
    taxable_value: Decimal = ZERO
    tax_rate: Decimal = ZERO  # percent
    igst_amount: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    cess_amount: Decimal = ZERO
    hsn_code: str | None = None
    description: str | None = None
    note_type: str | None = None  # CREDIT / DEBIT
    original_invoice: str | None = None
    export_type: str | None = None
    row_number: int | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Invoice:
        """Create an Invoice from a loaded record, treating missing amounts as zero."""
        note_type = _opt_str(d.get("note_type"))
        pos = _opt_str(d.get("place_of_supply"))
        row = d.get("row_number")
        return cls(
            invoice_number=str(d.get("invoice_number") or "").strip(),
            invoice_date=str(d.get("invoice_date") or "").strip(),
            month=int(d["month"]),
            year=int(d["year"]),
            buyer_gstin=_opt_str(d.get("buyer_gstin")),
            buyer_name=_opt_str(d.get("buyer_name")),
            place_of_supply=pos.zfill(2) if pos and pos.isdigit() else pos,
            reverse_charge=_flag(d.get("reverse_charge", False)),
            invoice_value=to_decimal(d.get("invoice_value")),
            taxable_value=to_decimal(d.get("taxable_value")),
            tax_rate=to_decimal(d.get("tax_rate")),
            igst_amount=to_decimal(d.get("igst_amount")),
            cgst_amount=to_decimal(d.get("cgst_amount")),
            sgst_amount=to_decimal(d.get("sgst_amount")),
            cess_amount=to_decimal(d.get("cess_amount")),
            hsn_code=_opt_str(d.get("hsn_code")),
            description=_opt_str(d.get("description")),
            note_type=note_type.upper() if note_type else None,
            original_invoice=_opt_str(d.get("original_invoice")),
            export_type=_opt_str(d.get("export_type")),
            row_number=int(row) if row is not None else None,
        )

    @property
    def total_tax(self) -> Decimal:
        return self.igst_amount + self.cgst_amount + self.sgst_amount + self.cess_amount
