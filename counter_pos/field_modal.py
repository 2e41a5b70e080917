"""Single-value entry modal screen (payment amount, reference number)."""

from __future__ import annotations

from typing import Callable

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static


def amount_chars(value: str, char: str) -> bool:
    """Digits plus a single decimal point, at most two decimals."""
    if char == ".":
        return "." not in value
    if not char.isdigit():
        return False
    if "." in value and len(value.split(".", 1)[1]) >= 2:
        return False
    return True


def reference_chars(value: str, char: str) -> bool:
    return char.isalnum() or char in "-_/"


class FieldEntryModal(ModalScreen[str | None]):
    """Prompt for one typed value; dismisses with the text or None on cancel."""

    CSS = """
    FieldEntryModal {
        align: center middle;
        background: $background 60%;
    }

    #field-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #field-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #field-prompt {
        color: white;
        margin-bottom: 1;
    }

    #field-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #field-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #field-help {
        color: #dddddd;
    }
    """

    def __init__(
        self,
        title: str,
        prompt: str,
        value: str = "",
        accepts: Callable[[str, str], bool] = reference_chars,
        max_length: int = 32,
        required: bool = True,
    ) -> None:
        super().__init__()
        self.title_text = title
        self.prompt = prompt
        self.value = value
        self.accepts = accepts
        self.max_length = max_length
        self.required = required
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="field-dialog"):
            yield Static(self.title_text, id="field-title")
            yield Static(self.prompt, id="field-prompt")
            yield Static(id="field-value")
            yield Static(id="field-error")
            yield Static("Enter confirm. Backspace delete. Esc/Ctrl+C cancel.", id="field-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and len(event.character) == 1:
            if len(self.value) < self.max_length and self.accepts(self.value, event.character):
                self.value += event.character
                self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        value = self.value.strip()
        if self.required and not value:
            self.error = f"{self.title_text} is required."
            self._refresh_content()
            return
        self.dismiss(value)

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#field-value", Static)
        error_widget = self.query_one("#field-error", Static)
        value_widget.update(f"{self.value}|")
        error_widget.update(self.error or "")
