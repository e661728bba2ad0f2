"""Textual front end: one button that generates a sequence."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Button, Footer, Header, Static

from seqgen.core.errors import CorruptStateError
from seqgen.core.generator import SequenceGenerator, generate_in_thread
from seqgen.core.models import Outcome
from seqgen.ui.result_modal import ResultModal


class SequenceApp(App):
    """Generate a sequence and show it in a modal."""

    TITLE = "seqgen"
    SUB_TITLE = "Global script sequence"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True, priority=True),
        Binding("g", "generate", "Generate", show=True),
    ]

    DEFAULT_CSS = """
    #main {
        align: center middle;
    }

    #last-token {
        width: auto;
        margin-bottom: 1;
    }
    """

    def __init__(self, generator: SequenceGenerator) -> None:
        super().__init__()
        self._generator = generator
        self._busy = False
        self.last_outcome: Outcome | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield Static("", id="last-token", markup=False)
            yield Button("Generate sequence", id="generate-btn", variant="primary")
        yield Footer()

    def on_mount(self) -> None:
        self._show_last()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "generate-btn":
            self.action_generate()

    def action_generate(self) -> None:
        if self._busy or isinstance(self.screen, ResultModal):
            return
        self._busy = True
        self.query_one("#generate-btn", Button).disabled = True
        self.run_worker(self._generate(), exclusive=True)

    async def _generate(self) -> None:
        # The blocking fetch runs in a thread so the UI keeps redrawing.
        try:
            outcome = await generate_in_thread(self._generator)
        finally:
            self._busy = False
            self.query_one("#generate-btn", Button).disabled = False

        self.last_outcome = outcome
        if outcome.token is not None:
            self.copy_to_clipboard(outcome.token)
        self._show_last()
        self.push_screen(ResultModal(outcome))

    def _show_last(self) -> None:
        label = self.query_one("#last-token", Static)
        try:
            record = self._generator.last()
        except (CorruptStateError, OSError) as e:
            label.update(f"State unreadable: {e}")
            return
        if record is None:
            label.update("No sequence generated yet")
        else:
            issued = record.issued_at.strftime("%Y-%m-%d %H:%M:%S UTC")
            label.update(f"Last sequence: {record.token} ({issued})")


def run_app(generator: SequenceGenerator) -> None:
    """Entry point for the ui command."""
    SequenceApp(generator).run()
