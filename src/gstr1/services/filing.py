from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from gstr1.config import get_returns_dir, load_client
from gstr1.models.client import Client
from gstr1.models.invoice import Invoice
from gstr1.services.assembler import FilingMetadata, assemble
from gstr1.services.exceptions import FilingRefusedError, InvoiceFileError
from gstr1.services.json_encoder import encode_document
from gstr1.services.validation import PeriodReview, validate_period
from gstr1.utils.atomic import write_atomic
from gstr1.utils.registry import FilingStatus, record_status
from gstr1.utils.validators import validate_gstin, validate_state_code

logger = logging.getLogger(__name__)

# Column headings accepted in invoice files, mapped to Invoice field names
_COLUMN_ALIASES = {
    "Invoice Number": "invoice_number",
    "InvoiceNumber": "invoice_number",
    "Invoice Date": "invoice_date",
    "InvoiceDate": "invoice_date",
    "Buyer GSTIN": "buyer_gstin",
    "BuyerGSTIN": "buyer_gstin",
    "Buyer Name": "buyer_name",
    "BuyerName": "buyer_name",
    "Place of Supply": "place_of_supply",
    "POS": "place_of_supply",
    "Reverse Charge": "reverse_charge",
    "Invoice Value": "invoice_value",
    "InvoiceValue": "invoice_value",
    "Taxable Value": "taxable_value",
    "TaxableValue": "taxable_value",
    "Tax Rate": "tax_rate",
    "TaxRate": "tax_rate",
    "IGST Amount": "igst_amount",
    "IGST": "igst_amount",
    "CGST Amount": "cgst_amount",
    "CGST": "cgst_amount",
    "SGST Amount": "sgst_amount",
    "SGST": "sgst_amount",
    "Cess Amount": "cess_amount",
    "CESS": "cess_amount",
    "HSN Code": "hsn_code",
    "HSN": "hsn_code",
    "Description": "description",
    "Note Type": "note_type",
    "Original Invoice": "original_invoice",
    "Export Type": "export_type",
}


@dataclass(frozen=True)
class GeneratedReturn:
    """A GSTR-1 document ready to be saved or uploaded to the portal."""

    client: Client
    month: int
    year: int
    document: dict[str, Any]
    metadata: FilingMetadata
    file_name: str
    content: bytes
    review: PeriodReview


def _normalize_record(record: dict[str, Any]) -> dict[str, Any]:
    return {_COLUMN_ALIASES.get(str(k).strip(), str(k).strip()): v for k, v in record.items()}


def load_invoices(path: Path, month: int, year: int) -> list[Invoice]:
    """Read a YAML or JSON list of invoice records for one filing period.

    Row numbers default to the 1-based position in the list. Every record is
    stamped with the given period.
    """
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise InvoiceFileError(f"Cannot read invoice file {path}: {e}") from e

    if isinstance(data, dict) and "invoices" in data:
        data = data["invoices"]
    if not isinstance(data, list):
        raise InvoiceFileError(f"{path}: expected a list of invoice records")

    invoices: list[Invoice] = []
    for index, record in enumerate(data, start=1):
        if not isinstance(record, dict):
            raise InvoiceFileError(f"{path}: record {index} is not a mapping")
        fields = _normalize_record(record)
        fields.setdefault("row_number", index)
        fields["month"] = month
        fields["year"] = year
        try:
            invoices.append(Invoice.from_dict(fields))
        except (TypeError, ValueError) as e:
            raise InvoiceFileError(f"{path}: record {index}: {e}") from e

    logger.info("Loaded %d invoices from %s for %02d/%d", len(invoices), path, month, year)
    return invoices


def review(invoices: Sequence[Invoice]) -> PeriodReview:
    """Validate a period and log the outcome."""
    result = validate_period(invoices)
    logger.info(
        "Period review: %d valid, %d invalid (%d errors, %d warnings)",
        result.valid_count,
        result.invalid_count,
        result.error_count,
        result.warning_count,
    )
    return result


def _summary(metadata: FilingMetadata) -> dict[str, Any]:
    return json.loads(encode_document(metadata.to_dict()))


def _record(client_slug: str, month: int, year: int, status: FilingStatus, **extra: Any) -> None:
    try:
        record_status(client_slug, month, year, status, **extra)
    except Exception:
        logger.warning("Failed to record filing status", exc_info=True)


def _load_filer(client_slug: str) -> Client:
    client = Client.from_dict(load_client(client_slug))
    validate_gstin(client.gstin)
    validate_state_code(client.state_code)
    return client


def review_period(
    client_slug: str, month: int, year: int, invoices: Sequence[Invoice]
) -> PeriodReview:
    """Validate a client period and record whether it has validation errors."""
    result = review(invoices)
    status = (
        FilingStatus.VALIDATION_ERRORS if result.error_count else FilingStatus.DATA_RECEIVED
    )
    _record(client_slug, month, year, status)
    return result


def generate(
    client_slug: str, month: int, year: int, invoices: Sequence[Invoice]
) -> GeneratedReturn:
    """Validate the period and assemble its GSTR-1 document.

    Raises FilingRefusedError when any invoice is INVALID or none is VALID.
    Raises ValueError when the client profile has a malformed GSTIN or state code.
    Only VALID invoices reach the assembler.
    """
    client = _load_filer(client_slug)
    result = review_period(client_slug, month, year, invoices)

    if result.invalid_count > 0:
        raise FilingRefusedError(
            f"Cannot generate JSON: {result.invalid_count} invoice(s) have validation "
            "errors. Please fix all errors first.",
            review=result,
        )
    if result.valid_count == 0:
        raise FilingRefusedError("No validated invoices found for this period", review=result)

    document, metadata, file_name = assemble(
        client.gstin, client.state_code, month, year, result.valid_invoices
    )
    generated = GeneratedReturn(
        client=client,
        month=month,
        year=year,
        document=document,
        metadata=metadata,
        file_name=file_name,
        content=encode_document(document),
        review=result,
    )
    _record(
        client_slug,
        month,
        year,
        FilingStatus.JSON_GENERATED,
        file_name=file_name,
        summary=_summary(metadata),
    )
    return generated


def save_return(generated: GeneratedReturn, output: Path | None = None) -> Path:
    """Write the generated JSON to ``output`` or the returns directory (atomic write)."""
    out_path = output or get_returns_dir() / generated.file_name
    write_atomic(out_path, generated.content)
    logger.info("Saved %s", out_path)
    return out_path
