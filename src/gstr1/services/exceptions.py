from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gstr1.services.validation import PeriodReview


class FilingRefusedError(Exception):
    """The period is not ready for a GSTR-1 file: invalid invoices, or no valid ones."""

    def __init__(self, message: str, review: PeriodReview | None = None) -> None:
        super().__init__(message)
        self.review = review


class InvoiceFileError(Exception):
    """An invoice input file could not be read or has an unexpected shape."""
