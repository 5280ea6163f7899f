from __future__ import annotations

from collections.abc import Sequence

from textual.app import App
from textual.binding import Binding

from gstr1.models.invoice import Invoice


class Gstr1App(App):
    """GSTR-1 period review TUI."""

    CSS_PATH = "app.tcss"
    TITLE = "GSTR-1 Filer"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
    ]

    def __init__(self, client: str, month: int, year: int, invoices: Sequence[Invoice]):
        super().__init__()
        self.client = client
        self.month = month
        self.year = year
        self.invoices = list(invoices)

    def on_mount(self) -> None:
        from gstr1.tui.screens.review import ReviewScreen

        self.push_screen(ReviewScreen())
