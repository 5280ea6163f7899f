from __future__ import annotations

import re
from datetime import date

from gstr1.config import VALID_STATE_CODES

# 2-digit state + 5 letters + 4 digits + letter + entity code + Z + check char
GSTIN_RE = re.compile(r"[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]")
INVOICE_DATE_RE = re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{4})")


def is_well_formed_gstin(value: str | None) -> bool:
    """Structural GSTIN check. The trailing checksum character is not verified."""
    return bool(value) and GSTIN_RE.fullmatch(value) is not None


def parse_invoice_date(value: str) -> date:
    """Parse a DD-MM-YYYY invoice date.

    Raises ValueError if the text is not in DD-MM-YYYY form or is not a
    real calendar date.
    """
    m = INVOICE_DATE_RE.fullmatch(value)
    if not m:
        raise ValueError(f'Date "{value}" is not in DD-MM-YYYY format')
    day, month, year = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f'Date "{value}" is not a valid calendar date') from None


def validate_gstin(value: str) -> str:
    """Validate a filer GSTIN supplied by the user. Returns it upper-cased."""
    gstin = value.strip().upper()
    if not is_well_formed_gstin(gstin):
        raise ValueError(f"Invalid GSTIN: '{value}'. Expected 15-character GSTIN")
    if gstin[:2] not in VALID_STATE_CODES:
        raise ValueError(f"GSTIN '{value}' has invalid state code (must be 01-38)")
    return gstin


def validate_state_code(value: str) -> str:
    """Validate a 2-digit state code (01-38), zero-padding single digits."""
    code = value.strip().zfill(2)
    if code not in VALID_STATE_CODES:
        raise ValueError(f"Invalid state code: '{value}' (must be 01-38)")
    return code


def validate_month(value: str | int) -> int:
    """Validate a filing-period month (1-12)."""
    try:
        month = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid month: '{value}'") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return month


def validate_year(value: str | int) -> int:
    """Validate a filing-period year (2000-2100)."""
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid year: '{value}'") from None
    if not 2000 <= year <= 2100:
        raise ValueError(f"Year must be between 2000 and 2100, got {year}")
    return year
