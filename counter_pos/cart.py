"""In-memory cart for the order being built at the counter."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from counter_pos.constant import ORDER_TYPE_DINE_IN, ORDER_TYPES
from counter_pos.errors import ValidationError
from counter_pos.models import CartLine, DiningTable, MenuItem
from counter_pos.money import ZERO


@dataclass
class Cart:
    """Draft order: insertion-ordered lines keyed by menu item id.

    Totals use client-known prices and are advisory; the backend re-prices the
    order on submission. Nothing is rounded here.
    """

    lines: list[CartLine] = field(default_factory=list)
    order_type: str = ORDER_TYPE_DINE_IN
    table: DiningTable | None = None
    notes: str = ""

    def _find(self, item_id: str) -> CartLine | None:
        for line in self.lines:
            if line.menu_item.item_id == item_id:
                return line
        return None

    def add_line(self, item: MenuItem) -> CartLine:
        """Add one unit of item, merging into its existing line if present."""
        line = self._find(item.item_id)
        if line is None:
            line = CartLine(menu_item=item, quantity=1)
            self.lines.append(line)
        else:
            line.quantity += 1
        return line

    def remove_line(self, item_id: str) -> None:
        """Take one unit off a line; the last unit deletes the line. Unknown ids are ignored."""
        line = self._find(item_id)
        if line is None:
            return
        if line.quantity > 1:
            line.quantity -= 1
            return
        self.lines.remove(line)

    def quantity_of(self, item_id: str) -> int:
        line = self._find(item_id)
        return line.quantity if line is not None else 0

    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def clear(self) -> None:
        self.lines.clear()

    def reset(self) -> None:
        """Return to a fresh draft: no lines, no table, no notes, dine-in."""
        self.lines.clear()
        self.order_type = ORDER_TYPE_DINE_IN
        self.table = None
        self.notes = ""

    def set_order_type(self, order_type: str) -> None:
        """Change order type.

        Leaving dine-in with a table selected drops the table and the lines
        picked for it, so a stale table never reaches a takeout or delivery order.
        """
        if order_type not in ORDER_TYPES:
            raise ValidationError(f"Unknown order type {order_type!r}")
        if order_type == self.order_type:
            return
        if order_type != ORDER_TYPE_DINE_IN and self.table is not None:
            self.table = None
            self.lines.clear()
        self.order_type = order_type

    def select_table(self, table: DiningTable) -> None:
        if self.order_type != ORDER_TYPE_DINE_IN:
            raise ValidationError("Tables can only be assigned to dine-in orders")
        self.table = table

    def clear_table(self) -> None:
        self.table = None

    def snapshot(self) -> tuple[tuple[str, int], ...]:
        """Hashable (item id, quantity) view of the lines, in order."""
        return tuple((line.menu_item.item_id, line.quantity) for line in self.lines)
