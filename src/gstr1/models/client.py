from __future__ import annotations

from dataclasses import dataclass

from gstr1.config import DEFAULT_STATE_CODE


@dataclass(frozen=True)
class Client:
    """Registered taxpayer whose GSTR-1 return is being prepared."""

    gstin: str
    legal_name: str
    state_code: str
    trade_name: str | None = None
    email: str | None = None
    filing_frequency: str = "MONTHLY"

    @classmethod
    def from_dict(cls, d: dict) -> Client:
        """Create a Client from a YAML-loaded dict.

        The home state code defaults to the GSTIN's leading two digits.
        """
        gstin = str(d["gstin"]).strip().upper()
        state_code = d.get("state_code")
        if state_code is None:
            state_code = gstin[:2] if gstin[:2].isdigit() else DEFAULT_STATE_CODE
        return cls(
            gstin=gstin,
            legal_name=d["legal_name"],
            state_code=str(state_code).zfill(2),
            trade_name=d.get("trade_name"),
            email=d.get("email"),
            filing_frequency=str(d.get("filing_frequency", "MONTHLY")).upper(),
        )
