"""Table picker modal screen for dine-in orders."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from counter_pos.data import filter_tables
from counter_pos.lifecycle import PayableOrdersPool
from counter_pos.models import DiningTable
from counter_pos.rendering import format_table

_MAX_VISIBLE_ROWS = 12


class TablePickerModal(ModalScreen[DiningTable | None]):
    """Pick a table; typed digits filter by table number or capacity."""

    CSS = """
    TablePickerModal {
        align: center middle;
        background: $background 60%;
    }

    #table-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #table-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #table-filter {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #table-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, tables: list[DiningTable], pool: PayableOrdersPool, current: DiningTable | None = None) -> None:
        super().__init__()
        self.tables = tables
        self.pool = pool
        self.filter_value = ""
        self.cursor_index = 0
        if current is not None:
            for idx, table in enumerate(tables):
                if table.table_id == current.table_id:
                    self.cursor_index = idx
                    break

    def compose(self) -> ComposeResult:
        with Container(id="table-dialog"):
            yield Static("Select table", id="table-title")
            yield Static(id="table-filter")
            yield Static(id="table-list")
            yield Static("Digits filter, ↑/↓ move, Enter select, Esc cancel", id="table-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def _visible(self) -> list[DiningTable]:
        return filter_tables(self.tables, self.filter_value)

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            visible = self._visible()
            if visible:
                self.dismiss(visible[self.cursor_index])
            event.stop()
            return

        if event.key in {"up", "down"}:
            visible = self._visible()
            if visible:
                delta = -1 if event.key == "up" else 1
                self.cursor_index = (self.cursor_index + delta) % len(visible)
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.filter_value:
                self.filter_value = self.filter_value[:-1]
                self.cursor_index = 0
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and event.character.isdigit():
            if len(self.filter_value) < 4:
                self.filter_value += event.character
            self.cursor_index = 0
            self._refresh_content()
            event.stop()

    def _refresh_content(self) -> None:
        self.query_one("#table-filter", Static).update(f"Filter: {self.filter_value}|")
        list_widget = self.query_one("#table-list", Static)
        visible = self._visible()
        if not visible:
            list_widget.update("No tables match")
            return
        if self.cursor_index >= len(visible):
            self.cursor_index = 0

        start = max(0, min(self.cursor_index - _MAX_VISIBLE_ROWS // 2, len(visible) - _MAX_VISIBLE_ROWS))
        end = min(len(visible), start + _MAX_VISIBLE_ROWS)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            table = visible[idx]
            pointer = "➤ " if idx == self.cursor_index else "  "
            lines.append(pointer)
            lines.append_text(format_table(table, self.pool.order_for_table(table.table_id)))
        if end < len(visible):
            lines.append("\n⋮", style="dim")
        list_widget.update(lines)
