from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import DataTable, Footer, RichLog, Static

from gstr1.models.finding import Severity, ValidationStatus
from gstr1.services.validation import InvoiceResult, PeriodReview

_SEVERITY_STYLE = {Severity.ERROR: "red", Severity.WARNING: "yellow"}


class ReviewScreen(Screen):
    """Invoice table with the highlighted invoice's findings below it."""

    BINDINGS = [
        Binding("g", "generate", "Generate JSON"),
        Binding("r", "revalidate", "Revalidate"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._review: PeriodReview | None = None

    @property
    def review(self) -> PeriodReview | None:
        return self._review

    def compose(self) -> ComposeResult:
        app = self.app
        with Horizontal(id="top-bar"):
            yield Static("GSTR-1 Filer", id="app-title")
            yield Static(
                f"{app.client}  {app.month:02d}/{app.year}",  # type: ignore[attr-defined]
                id="period-info",
            )
        yield Static("", id="summary-bar")
        yield DataTable(id="invoice-table", cursor_type="row", zebra_stripes=True)
        yield RichLog(id="findings", wrap=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#invoice-table", DataTable)
        table.add_columns("Row", "Invoice", "Date", "Category", "Status", "Findings")
        self._run_review()
        table.focus()

    def _run_review(self) -> None:
        from gstr1.services.filing import review_period

        app = self.app
        self._review = review_period(
            app.client, app.month, app.year, app.invoices  # type: ignore[attr-defined]
        )
        table = self.query_one("#invoice-table", DataTable)
        table.clear()
        for index, result in enumerate(self._review.results):
            inv = result.invoice
            status = (
                "[green]VALID[/green]"
                if result.status is ValidationStatus.VALID
                else "[red]INVALID[/red]"
            )
            table.add_row(
                str(inv.row_number) if inv.row_number is not None else "-",
                inv.invoice_number or "(blank)",
                inv.invoice_date,
                str(result.category),
                status,
                str(len(result.findings)),
                key=str(index),
            )

        r = self._review
        self._show_period_status()
        self.query_one("#summary-bar", Static).update(
            f"{r.total} invoices · {r.valid_count} valid · {r.invalid_count} invalid · "
            f"{r.error_count} errors · {r.warning_count} warnings"
        )
        if r.results:
            self._show_findings(r.results[0])
        else:
            self.query_one("#findings", RichLog).clear()

    def _show_period_status(self) -> None:
        from gstr1.utils.registry import get_status

        app = self.app
        entry = get_status(app.client, app.month, app.year)  # type: ignore[attr-defined]
        status = entry["gstr1_status"] if entry else "NEW"
        self.query_one("#period-info", Static).update(
            f"{app.client}  {app.month:02d}/{app.year}  ({status})"  # type: ignore[attr-defined]
        )

    def _show_findings(self, result: InvoiceResult) -> None:
        log = self.query_one("#findings", RichLog)
        log.clear()
        inv = result.invoice
        log.write(f"[b]{inv.invoice_number or '(blank)'}[/b]  {inv.buyer_name or ''}")
        if not result.findings:
            log.write("[green]No findings[/green]")
            return
        for f in result.findings:
            style = _SEVERITY_STYLE[f.severity]
            log.write(f"[{style}]{f.severity}[/{style}] {f.field_name}: {f.message}")

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if self._review is None or event.row_key.value is None:
            return
        self._show_findings(self._review.results[int(event.row_key.value)])

    def action_revalidate(self) -> None:
        self._run_review()
        self.notify("Period revalidated", timeout=2)

    def action_generate(self) -> None:
        from gstr1.services.exceptions import FilingRefusedError
        from gstr1.services.filing import generate, save_return

        app = self.app
        try:
            generated = generate(
                app.client, app.month, app.year, app.invoices  # type: ignore[attr-defined]
            )
            path = save_return(generated)
        except FilingRefusedError as e:
            self.notify(str(e), severity="error", timeout=6)
            return
        except Exception as e:
            self.notify(f"Generation failed: {e}", severity="error", timeout=6)
            return
        self.notify(f"Saved {path}", severity="information", timeout=4)
        self._show_period_status()

    def action_quit(self) -> None:
        self.app.exit()
