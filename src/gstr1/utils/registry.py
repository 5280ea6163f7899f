"""Local filing-status ledger: one entry per (client, month, year).

Records where each period stands in the GSTR-1 workflow (data received
through filed) together with the last generated file and, once the
return is filed on the portal, its acknowledgement reference (ARN).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from filelock import FileLock

from gstr1 import config as _config
from gstr1.utils.atomic import write_atomic

logger = logging.getLogger(__name__)


class FilingStatus(StrEnum):
    DATA_RECEIVED = "DATA_RECEIVED"
    VALIDATION_ERRORS = "VALIDATION_ERRORS"
    JSON_GENERATED = "JSON_GENERATED"
    FILED = "FILED"


def _ledger_path() -> Path:
    return _config.get_data_dir() / "filings.json"


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Corrupt file backed up: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during ledger read-modify-write."""
    lp = _ledger_path()
    lp.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lp.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    lp = _ledger_path()
    if not lp.exists():
        return []
    try:
        return json.loads(lp.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(lp)
        return []


def _save(entries: list[dict[str, Any]]) -> None:
    text = json.dumps(entries, indent=2, ensure_ascii=False) + "\n"
    write_atomic(_ledger_path(), text.encode("utf-8"))


def _matches(entry: dict[str, Any], client: str, month: int, year: int) -> bool:
    return (
        entry.get("client") == client
        and entry.get("month") == month
        and entry.get("year") == year
    )


def _upsert(
    client: str, month: int, year: int, status: FilingStatus, fields: dict[str, Any]
) -> dict[str, Any]:
    now = datetime.now(UTC).isoformat(timespec="seconds")
    with _locked():
        entries = _load()
        entry = next((e for e in entries if _matches(e, client, month, year)), None)
        if entry is None:
            entry = {"client": client, "month": month, "year": year, "created_at": now}
            entries.append(entry)

        entry["gstr1_status"] = str(status)
        entry["updated_at"] = now
        entry.update({k: v for k, v in fields.items() if v is not None})
        _save(entries)
    return entry


def record_status(
    client: str,
    month: int,
    year: int,
    status: FilingStatus,
    *,
    file_name: str | None = None,
    summary: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create or update the ledger entry for a client period."""
    return _upsert(client, month, year, status, {"file_name": file_name, "summary": summary})


def record_filed(
    client: str, month: int, year: int, arn: str, filing_date: date
) -> dict[str, Any]:
    """Mark a client period as filed on the GST portal.

    Stores the ARN and filing date (DD-MM-YYYY) on the period's entry,
    creating the entry if the return was prepared elsewhere.
    """
    arn = arn.strip().upper()
    if not arn:
        raise ValueError("ARN is required to record a filed return")
    logger.info("Recording %s %02d/%d as filed (ARN %s)", client, month, year, arn)
    return _upsert(
        client,
        month,
        year,
        FilingStatus.FILED,
        {"return_type": "GSTR1", "arn": arn, "filing_date": filing_date.strftime("%d-%m-%Y")},
    )


def get_status(client: str, month: int, year: int) -> dict[str, Any] | None:
    """Look up the ledger entry for a client period."""
    with _locked():
        entries = _load()
    return next((e for e in entries if _matches(e, client, month, year)), None)


def list_filings(
    client: str | None = None, status: FilingStatus | None = None
) -> list[dict[str, Any]]:
    """Return ledger entries, newest period first, optionally for one client or status."""
    with _locked():
        entries = _load()
    if client:
        entries = [e for e in entries if e.get("client") == client]
    if status is not None:
        entries = [e for e in entries if e.get("gstr1_status") == str(status)]
    return sorted(entries, key=lambda e: (e.get("year", 0), e.get("month", 0)), reverse=True)
