from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from importlib.resources import files
from pathlib import Path


def _configure_logging(verbose: bool) -> None:
    """Configure the root logger once for CLI runs. GSTR1_LOG_LEVEL overrides -v."""
    level_name = os.environ.get("GSTR1_LOG_LEVEL")
    if level_name:
        level = logging.getLevelName(level_name.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def _init_config() -> None:
    """Copy bundled config templates to the user's config/data directories."""
    from gstr1.config import get_config_dir, get_data_dir

    config_dir = get_config_dir()
    data_dir = get_data_dir()
    templates = files("gstr1") / "templates"

    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "clients").mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in [
        "clients/acme-traders.yaml.example",
        "invoices.yaml.example",
    ]:
        dest = config_dir / rel
        if dest.exists():
            print(f"  already exists: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  created: {dest}")
        copied += 1

    print()
    print(f"Config: {config_dir}")
    print(f"Data:   {data_dir}")
    print()
    if copied:
        print("Next steps:")
        clients = config_dir / "clients"
        print(f"  1. cp {clients / 'acme-traders.yaml.example'} {clients / 'acme-traders.yaml'}")
        print("  2. Edit the profile with the client's GSTIN and legal name")
        print("  3. Run: gstr1-filer validate acme-traders 2 2026 invoices.yaml")
    else:
        print("No new files created (all already existed).")


def _preflight(client: str) -> bool:
    """Verify the client profile exists before running a command.

    Auto-creates the data directory.
    """
    from gstr1.config import get_config_dir, get_data_dir, list_clients

    get_data_dir().mkdir(parents=True, exist_ok=True)

    config_dir = get_config_dir()
    if not config_dir.is_dir():
        print(f"Error: config directory not found: {config_dir}")
        print("Run 'gstr1-filer init' to create the example files.")
        return False
    if not (config_dir / "clients" / f"{client}.yaml").is_file():
        print(f"Error: client profile '{client}.yaml' not found in {config_dir / 'clients'}")
        available = list_clients()
        if available:
            print(f"Available clients: {', '.join(available)}")
        else:
            print("Run 'gstr1-filer init' and configure the client.")
        return False
    return True


def _load_period(args: argparse.Namespace):
    from gstr1.services.filing import load_invoices
    from gstr1.utils.validators import validate_month, validate_year

    month = validate_month(args.month)
    year = validate_year(args.year)
    return month, year, load_invoices(Path(args.file), month, year)


def _print_review(review) -> None:
    for result in review.results:
        inv = result.invoice
        row = inv.row_number if inv.row_number is not None else "-"
        number = inv.invoice_number or "(blank)"
        print(f"row {row:>4}  {number:<20} {result.category:<5} {result.status}")
        for f in result.findings:
            print(f"          [{f.severity}] {f.field_name}: {f.message}")
    print()
    print(f"Total invoices: {review.total}")
    print(f"Valid:          {review.valid_count}")
    print(f"Invalid:        {review.invalid_count}")
    print(f"Errors:         {review.error_count}")
    print(f"Warnings:       {review.warning_count}")


def cmd_validate(args: argparse.Namespace) -> int:
    from gstr1.services.filing import review_period

    month, year, invoices = _load_period(args)
    review = review_period(args.client, month, year, invoices)
    _print_review(review)
    return 0 if review.invalid_count == 0 else 1


def cmd_generate(args: argparse.Namespace) -> int:
    from gstr1.services.exceptions import FilingRefusedError
    from gstr1.services.filing import generate, save_return
    from gstr1.utils.formatters import format_inr

    month, year, invoices = _load_period(args)
    try:
        generated = generate(args.client, month, year, invoices)
    except FilingRefusedError as e:
        print(f"Error: {e}")
        if e.review is not None and e.review.invalid_count:
            print("Run 'gstr1-filer validate' to see the findings.")
        return 1

    out_path = save_return(generated, Path(args.output) if args.output else None)
    meta = generated.metadata
    print(f"Saved: {out_path}")
    print(f"Invoices:      {meta.total_invoices}")
    print(f"Taxable value: {format_inr(meta.total_taxable_value)}")
    print(f"Total tax:     {format_inr(meta.total_tax)}")
    s = meta.sections
    print(
        f"Sections:      b2b={s.b2b} b2cl={s.b2cl} b2cs={s.b2cs} "
        f"cdnr={s.cdnr} exp={s.exp} hsn={s.hsn}"
    )
    return 0


def cmd_review(args: argparse.Namespace) -> int:
    from gstr1.tui.app import Gstr1App

    month, year, invoices = _load_period(args)
    app = Gstr1App(args.client, month, year, invoices)
    app.run()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    from gstr1.utils.formatters import format_inr
    from gstr1.utils.registry import FilingStatus, list_filings

    entries = list_filings(args.client, FilingStatus.FILED if args.filed else None)
    if not entries:
        print("No filings recorded.")
        return 0
    for e in entries:
        line = f"{e['client']:<20} {e['month']:02d}/{e['year']}  {e['gstr1_status']:<18}"
        summary = e.get("summary")
        if summary:
            line += (
                f" {summary['total_invoices']} invoices, "
                f"taxable {format_inr(str(summary['total_taxable_value']))}"
            )
        if e.get("arn"):
            line += f" ARN {e['arn']} filed {e['filing_date']}"
        print(line)
    return 0


def cmd_filed(args: argparse.Namespace) -> int:
    from gstr1.config import IST
    from gstr1.utils.registry import record_filed
    from gstr1.utils.validators import parse_invoice_date, validate_month, validate_year

    month = validate_month(args.month)
    year = validate_year(args.year)
    filing_date = parse_invoice_date(args.date) if args.date else datetime.now(IST).date()
    entry = record_filed(args.client, month, year, args.arn, filing_date)
    print(
        f"Recorded {args.client} {month:02d}/{year} as FILED "
        f"(ARN {entry['arn']}, filed {entry['filing_date']})"
    )
    return 0


def _add_period_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("client", help="Client profile name (config/clients/<name>.yaml)")
    p.add_argument("month", help="Filing month (1-12)")
    p.add_argument("year", help="Filing year (YYYY)")
    p.add_argument("file", help="Invoice file (.yaml or .json)")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the gstr1-filer CLI."""
    parser = argparse.ArgumentParser(prog="gstr1-filer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create example config files")

    p_validate = sub.add_parser("validate", help="Validate a period's invoices")
    _add_period_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    p_generate = sub.add_parser("generate", help="Generate the GSTR-1 JSON")
    _add_period_args(p_generate)
    p_generate.add_argument("--output", help="Output path (default: data/returns/<file name>)")
    p_generate.set_defaults(func=cmd_generate)

    p_review = sub.add_parser("review", help="Review findings interactively")
    _add_period_args(p_review)
    p_review.set_defaults(func=cmd_review)

    p_status = sub.add_parser("status", help="List recorded filing statuses")
    p_status.add_argument("client", nargs="?", help="Only show this client")
    p_status.add_argument("--filed", action="store_true", help="Only show filed returns")

    p_filed = sub.add_parser("filed", help="Record a return as filed on the GST portal")
    p_filed.add_argument("client", help="Client profile name (config/clients/<name>.yaml)")
    p_filed.add_argument("month", help="Filing month (1-12)")
    p_filed.add_argument("year", help="Filing year (YYYY)")
    p_filed.add_argument("arn", help="Acknowledgement reference number from the portal")
    p_filed.add_argument("--date", help="Filing date as DD-MM-YYYY (default: today)")
    p_filed.set_defaults(func=cmd_filed)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "init":
        _init_config()
        return
    if args.command == "status":
        cmd_status(args)
        return

    if not _preflight(args.client):
        sys.exit(1)

    from gstr1.services.exceptions import InvoiceFileError

    try:
        exit_code = args.func(args)
    except (InvoiceFileError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(2)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
