"""Rich text helpers for the counter panels."""

from __future__ import annotations

from rich.text import Text

from counter_pos.constant import (
    ORDER_TYPE_BADGES,
    ORDER_TYPE_DELIVERY,
    ORDER_TYPE_LABELS,
    ORDER_TYPE_TAKEOUT,
    PAYMENT_METHOD_LABELS,
    PAYMENT_METHODS,
    TABLE_STATUS_OCCUPIED,
)
from counter_pos.models import CartLine, DiningTable, MenuItem, SubmittedOrder
from counter_pos.money import format_money


def badge_style(order_type: str) -> str:
    """Return a consistent badge style for order types."""
    if order_type == ORDER_TYPE_TAKEOUT:
        return "bold #ffffff on #b23a48"
    if order_type == ORDER_TYPE_DELIVERY:
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def order_type_badge(order_type: str, with_label: bool = False) -> Text:
    text = Text()
    text.append(f" {ORDER_TYPE_BADGES.get(order_type, '?')} ", style=badge_style(order_type))
    if with_label:
        text.append(f" {ORDER_TYPE_LABELS.get(order_type, order_type)}")
    return text


def format_cart_line(line: CartLine) -> Text:
    text = Text()
    text.append(f"{line.quantity:>3} x ", style="bold")
    text.append(line.menu_item.name)
    text.append(f"  {format_money(line.line_total)}", style="dim")
    return text


def format_menu_item(item: MenuItem, in_cart: int = 0) -> Text:
    text = Text(item.name)
    text.append(f"  {format_money(item.unit_price)}", style="dim")
    if in_cart:
        text.append(f"  [{in_cart} in cart]", style="bold #5fbf72")
    return text


def format_table(table: DiningTable, open_order: SubmittedOrder | None = None) -> Text:
    text = Text()
    text.append(f"Table {table.table_number}", style="bold")
    text.append(f"  seats {table.capacity}")
    if table.location:
        text.append(f"  {table.location}", style="dim")
    if table.status == TABLE_STATUS_OCCUPIED or open_order is not None:
        text.append("  occupied", style="bold #b23a48")
        if open_order is not None:
            text.append(f" #{open_order.display_number}")
    return text


def format_pending_order(order: SubmittedOrder) -> Text:
    text = Text()
    text.append_text(order_type_badge(order.order_type))
    text.append(f" #{order.display_number}")
    if order.table is not None and order.table.table_number:
        text.append(f"  T{order.table.table_number}")
    text.append(f"  {format_money(order.computed_total)}", style="bold")
    return text


def format_order_lines(order: SubmittedOrder) -> Text:
    text = Text()
    for idx, line in enumerate(order.lines):
        if idx > 0:
            text.append("\n")
        text.append(f"  {line.quantity} x {line.name}")
        text.append(f"  {format_money(line.line_total)}", style="dim")
    return text


def format_method_choices(selected: str) -> Text:
    text = Text()
    for idx, method in enumerate(PAYMENT_METHODS):
        if idx > 0:
            text.append("  ")
        label = PAYMENT_METHOD_LABELS[method]
        if method == selected:
            text.append(f"[{label}]", style="bold reverse")
        else:
            text.append(f" {label} ", style="dim")
    return text
