from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_amount(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_inr(value: Decimal | str) -> str:
    """Format an amount as ₹ X,XX,XXX.XX (Indian digit grouping)."""
    d = round_amount(Decimal(value))
    sign = "-" if d < 0 else ""
    whole, frac = f"{abs(d):.2f}".split(".")
    head, tail = whole[:-3], whole[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join([*groups, tail])
    return f"₹ {sign}{grouped}.{frac}"


def format_period(month: int, year: int) -> str:
    """Return the MMYYYY filing-period token."""
    return f"{month:02d}{year:04d}"
