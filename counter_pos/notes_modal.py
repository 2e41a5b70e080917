"""Order notes modal screen."""

from __future__ import annotations

from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from counter_pos.cart import Cart
from counter_pos.rendering import order_type_badge

_MAX_NOTES_LENGTH = 200


class NotesModal(ModalScreen[None]):
    """Centered modal to type free-text notes for the cart being built."""

    CSS = """
    NotesModal {
        align: center middle;
        background: $background 60%;
    }

    #notes-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #notes-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #notes-body {
        margin-bottom: 1;
        color: white;
    }

    #notes-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, cart: Cart, on_change: Callable[[], None]) -> None:
        super().__init__()
        self.cart = cart
        self.on_change = on_change
        self.value = cart.notes

    def compose(self) -> ComposeResult:
        with Container(id="notes-dialog"):
            yield Static("Order notes", id="notes-title")
            yield Static(id="notes-body")
            yield Static("Type text, Enter save, Ctrl+U clear, Esc discard", id="notes-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss()
            event.stop()
            return

        if event.key == "enter":
            self.cart.notes = " ".join(self.value.split())
            self.dismiss()
            self.on_change()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.key == "ctrl+u":
            self.value = ""
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.value) < _MAX_NOTES_LENGTH:
                self.value += event.character
            self._refresh_content()
            event.stop()
            return

        # Ignore all non-text keys while typing.
        event.stop()

    def _refresh_content(self) -> None:
        body = self.query_one("#notes-body", Static)
        content = Text(style="white")
        content.append_text(order_type_badge(self.cart.order_type, with_label=True))
        content.append(f"  {self.cart.item_count()} item(s)\n\n")
        content.append(f"{self.value}|", style="bold white")
        body.update(content)
