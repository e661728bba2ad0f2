"""Modal showing the outcome of a generation."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from seqgen.core.models import Blocked, ErrorKind, Failure, Generated, Outcome


def describe(outcome: Outcome) -> tuple[str, str]:
    """Return the (title, body) shown for *outcome*."""
    if isinstance(outcome, Generated):
        return "Sequence copied to clipboard", outcome.token
    if isinstance(outcome, Blocked):
        retry = outcome.retry_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        return (
            "Sequence already generated",
            f"{outcome.token}\n\nYour last generated sequence has been copied to "
            f"clipboard. A new one can be generated after {retry}.",
        )
    if outcome.error is ErrorKind.network_unreachable:
        return "Network error", outcome.message
    return "Something went wrong", outcome.message


class ResultModal(ModalScreen[None]):
    """Modal presenting a generated, cached or failed sequence."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=True),
        Binding("q", "dismiss", "Close", show=False),
    ]

    DEFAULT_CSS = """
    ResultModal {
        align: center middle;
    }

    ResultModal > Vertical {
        width: 70;
        max-width: 90%;
        height: auto;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    ResultModal.error > Vertical {
        border: thick $error;
    }

    ResultModal .modal-title {
        text-style: bold;
        text-align: center;
        padding: 1;
        background: $primary;
        color: $text;
        margin-bottom: 1;
    }

    ResultModal Button {
        margin-top: 1;
        width: 100%;
    }
    """

    def __init__(self, outcome: Outcome) -> None:
        super().__init__(classes="error" if isinstance(outcome, Failure) else "")
        self._outcome = outcome

    @property
    def outcome(self) -> Outcome:
        return self._outcome

    def compose(self) -> ComposeResult:
        title, body = describe(self._outcome)
        with Vertical():
            yield Static(title, classes="modal-title", id="result-title")
            yield Static(body, id="result-body", markup=False)
            yield Button("Close", id="close-btn", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "close-btn":
            self.dismiss()
