from __future__ import annotations

import json
from decimal import Decimal
from typing import Any


def _to_number(value: Any) -> int | float:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_document(document: dict[str, Any], indent: int | None = None) -> bytes:
    """Serialize a filing document to UTF-8 JSON bytes.

    Decimal amounts become JSON numbers; integral values are written without
    a fraction (50000, not 50000.0). Key order is the document's own order,
    so the same document always encodes to the same bytes.
    """
    separators = (",", ":") if indent is None else (",", ": ")
    text = json.dumps(
        document, default=_to_number, ensure_ascii=False, indent=indent, separators=separators
    )
    return text.encode("utf-8")
