"""Table label entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

_MAX_LABEL_LENGTH = 32


class TableLabelModal(ModalScreen[str | None]):
    """Ask for the table number or name; dismisses with the trimmed label or None."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    CSS = """
    TableLabelModal {
        align: center middle;
        background: $background 60%;
    }

    #table-label-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #table-label-error {
        color: #ffb3b3;
    }
    """

    def __init__(self, initial: str = "") -> None:
        super().__init__()
        self.initial = initial

    def compose(self) -> ComposeResult:
        with Vertical(id="table-label-dialog"):
            yield Label("[b]Table Number / Name[/b]  (Enter confirm, Esc cancel)")
            yield Input(
                value=self.initial,
                placeholder="e.g., 5, A1, Patio",
                max_length=_MAX_LABEL_LENGTH,
                id="table-label-input",
            )
            yield Label("", id="table-label-error")

    def on_mount(self) -> None:
        self.query_one("#table-label-input", Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        self.query_one("#table-label-error", Label).update("")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        label = event.value.strip()
        if not label:
            self.query_one("#table-label-error", Label).update("Please enter a table number or name.")
            return
        self.dismiss(label)

    def action_cancel(self) -> None:
        self.dismiss(None)
