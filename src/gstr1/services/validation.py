"""Statutory validation rules for GSTR-1 invoices.

Every rule returns a list of findings and never raises for bad invoice data.
Duplicate detection needs the whole period, so callers validate a complete,
materialized period with ``validate_period``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from gstr1.config import IST, TAX_TOLERANCE, VALID_HSN_LENGTHS, VALID_STATE_CODES
from gstr1.models.finding import Finding, Severity, ValidationStatus
from gstr1.models.invoice import Category, Invoice
from gstr1.services.classifier import classify
from gstr1.utils.validators import GSTIN_RE, parse_invoice_date

logger = logging.getLogger(__name__)

ERROR = Severity.ERROR
WARNING = Severity.WARNING


def _today() -> date:
    return datetime.now(IST).date()


# --- Rule 1: GSTIN format ---


def _check_gstin(gstin: str | None, field_name: str = "buyer_gstin") -> list[Finding]:
    if not gstin:
        return []
    if not GSTIN_RE.fullmatch(gstin):
        return [
            Finding(
                "gstin_format",
                field_name,
                f'GSTIN "{gstin}" does not match required 15-character format',
                ERROR,
            )
        ]
    state_code = gstin[:2]
    if state_code not in VALID_STATE_CODES:
        return [
            Finding(
                "gstin_format",
                field_name,
                f'GSTIN "{gstin}" has invalid state code "{state_code}" (must be 01-38)',
                ERROR,
            )
        ]
    return []


# --- Rule 2: duplicate invoice number ---


def _check_duplicate(invoice: Invoice, period: Sequence[Invoice]) -> list[Finding]:
    duplicates = [
        other
        for other in period
        if other is not invoice and other.invoice_number == invoice.invoice_number
    ]
    if not duplicates:
        return []
    rows = ", ".join(
        str(d.row_number) if d.row_number is not None else "unknown" for d in duplicates
    )
    return [
        Finding(
            "duplicate_invoice",
            "invoice_number",
            f'Invoice number "{invoice.invoice_number}" already exists for this period '
            f"(also in row {rows})",
            ERROR,
        )
    ]


# --- Rule 3: tax calculation ---


def _check_tax(invoice: Invoice) -> list[Finding]:
    findings: list[Finding] = []
    taxable = invoice.taxable_value
    rate = invoice.tax_rate
    igst = invoice.igst_amount
    cgst = invoice.cgst_amount
    sgst = invoice.sgst_amount

    expected = taxable * rate / 100

    # Inter-state path
    if igst > 0 and abs(expected - igst) > TAX_TOLERANCE:
        findings.append(
            Finding(
                "tax_calculation",
                "igst_amount",
                f"IGST amount {igst} does not match expected {expected:.2f} "
                f"(taxable: {taxable} x rate: {rate}%)",
                ERROR,
            )
        )

    # Intra-state path: CGST and SGST each carry half the tax
    if cgst > 0 or sgst > 0:
        half = expected / 2
        for field_name, label, amount in (
            ("cgst_amount", "CGST", cgst),
            ("sgst_amount", "SGST", sgst),
        ):
            if abs(half - amount) > TAX_TOLERANCE:
                findings.append(
                    Finding(
                        "tax_calculation",
                        field_name,
                        f"{label} amount {amount} does not match expected {half:.2f} "
                        f"(half of {expected:.2f})",
                        ERROR,
                    )
                )

    if igst == 0 and cgst == 0 and sgst == 0 and rate > 0:
        findings.append(
            Finding(
                "tax_calculation",
                "tax_amounts",
                f"No tax amounts declared but tax rate is {rate}%",
                WARNING,
            )
        )

    return findings


# --- Rule 4: required fields ---


def _check_required(invoice: Invoice) -> list[Finding]:
    findings: list[Finding] = []

    if not invoice.invoice_number.strip():
        findings.append(
            Finding("required_field", "invoice_number", "Invoice number is required", ERROR)
        )

    if not invoice.invoice_date.strip():
        findings.append(
            Finding("required_field", "invoice_date", "Invoice date is required", ERROR)
        )

    if invoice.taxable_value == 0 and not invoice.note_type:
        findings.append(
            Finding(
                "required_field",
                "taxable_value",
                "Taxable value is required and must be greater than zero",
                WARNING,
            )
        )

    if classify(invoice) is Category.B2B and not (invoice.buyer_gstin or "").strip():
        findings.append(
            Finding(
                "required_field",
                "buyer_gstin",
                "Buyer GSTIN is required for B2B transactions",
                ERROR,
            )
        )

    return findings


# --- Rule 5: invoice date ---


def _check_date(invoice: Invoice, today: date) -> list[Finding]:
    value = invoice.invoice_date
    if not value:
        return []

    try:
        parsed = parse_invoice_date(value)
    except ValueError as e:
        return [Finding("date_format", "invoice_date", str(e), ERROR)]

    findings: list[Finding] = []
    if parsed.month != invoice.month or parsed.year != invoice.year:
        findings.append(
            Finding(
                "date_format",
                "invoice_date",
                f"Invoice date {value} is not within the filing period "
                f"{invoice.month:02d}/{invoice.year}",
                WARNING,
            )
        )

    if parsed > today:
        findings.append(
            Finding("date_format", "invoice_date", f'Invoice date "{value}" is a future date', ERROR)
        )

    return findings


# --- Rule 6: HSN/SAC code ---


def _check_hsn(invoice: Invoice) -> list[Finding]:
    code = (invoice.hsn_code or "").strip()
    if not code:
        return []
    # ASCII digits only
    if not code.isascii() or not code.isdigit():
        return [
            Finding("hsn_code", "hsn_code", f'HSN/SAC code "{code}" must be numeric', ERROR)
        ]
    if len(code) not in VALID_HSN_LENGTHS:
        return [
            Finding(
                "hsn_code",
                "hsn_code",
                f'HSN/SAC code "{code}" must be 4, 6, or 8 digits (got {len(code)})',
                ERROR,
            )
        ]
    return []


def validate_invoice(
    invoice: Invoice,
    all_invoices_in_period: Sequence[Invoice],
    today: date | None = None,
) -> list[Finding]:
    """Run all six rules on one invoice and return every finding."""
    today = today or _today()
    findings: list[Finding] = []
    findings.extend(_check_gstin(invoice.buyer_gstin))
    findings.extend(_check_duplicate(invoice, all_invoices_in_period))
    findings.extend(_check_tax(invoice))
    findings.extend(_check_required(invoice))
    findings.extend(_check_date(invoice, today))
    findings.extend(_check_hsn(invoice))
    return findings


@dataclass(frozen=True)
class InvoiceResult:
    invoice: Invoice
    category: Category
    findings: list[Finding] = field(default_factory=list)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is WARNING]

    @property
    def status(self) -> ValidationStatus:
        return ValidationStatus.INVALID if self.errors else ValidationStatus.VALID


@dataclass(frozen=True)
class PeriodReview:
    """Outcome of validating every invoice of one (client, month, year)."""

    results: list[InvoiceResult]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def valid_invoices(self) -> list[Invoice]:
        return [r.invoice for r in self.results if r.status is ValidationStatus.VALID]

    @property
    def invalid_invoices(self) -> list[Invoice]:
        return [r.invoice for r in self.results if r.status is ValidationStatus.INVALID]

    @property
    def valid_count(self) -> int:
        return len(self.valid_invoices)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_invoices)

    @property
    def error_count(self) -> int:
        return sum(len(r.errors) for r in self.results)

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for r in self.results)

    @property
    def can_generate(self) -> bool:
        """True when no invoice is INVALID and at least one is VALID."""
        return self.invalid_count == 0 and self.valid_count > 0


def validate_period(invoices: Sequence[Invoice], today: date | None = None) -> PeriodReview:
    """Validate a complete period's invoices.

    The whole set is loaded before any invoice is judged, since duplicate
    detection compares each invoice against the rest of the period.
    """
    today = today or _today()
    by_number: dict[str, list[Invoice]] = defaultdict(list)
    for inv in invoices:
        by_number[inv.invoice_number].append(inv)

    results = [
        InvoiceResult(
            invoice=inv,
            category=classify(inv),
            findings=validate_invoice(inv, by_number[inv.invoice_number], today),
        )
        for inv in invoices
    ]
    review = PeriodReview(results=results)
    logger.debug(
        "Validated %d invoices: %d valid, %d invalid, %d errors, %d warnings",
        review.total,
        review.valid_count,
        review.invalid_count,
        review.error_count,
        review.warning_count,
    )
    return review
