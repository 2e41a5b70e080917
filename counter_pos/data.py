"""Conversion of backend payloads into domain models, plus menu/table lookup."""

from __future__ import annotations

from typing import Any, Iterable

from counter_pos.constant import ALL_CATEGORIES, ORDER_TYPE_ALIASES, ORDER_TYPE_DINE_IN, ORDER_TYPES
from counter_pos.models import (
    Category,
    DiningTable,
    MenuItem,
    OrderLine,
    PaymentResult,
    StaffUser,
    SubmittedOrder,
)
from counter_pos.money import ZERO, to_decimal


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def unwrap_list(data: Any, key: str) -> list[dict[str, Any]]:
    """Accept either a bare list or a ``{key: [...]}`` wrapper as list data."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        inner = data.get(key)
        if isinstance(inner, list):
            return inner
        inner = data.get("items")
        if isinstance(inner, list):
            return inner
    return []


def normalize_order_type(raw: Any) -> str:
    value = _text(raw, ORDER_TYPE_DINE_IN).strip().lower()
    value = ORDER_TYPE_ALIASES.get(value, value)
    return value if value in ORDER_TYPES else ORDER_TYPE_DINE_IN


def menu_item_from_api(raw: dict[str, Any]) -> MenuItem:
    return MenuItem(
        item_id=_text(raw.get("id")),
        name=_text(raw.get("name"), "Item"),
        unit_price=to_decimal(raw.get("price")),
        category_id=_text(raw.get("category_id")) or None,
        is_available=bool(raw.get("is_available", True)),
    )


def category_from_api(raw: dict[str, Any]) -> Category:
    return Category(category_id=_text(raw.get("id")), name=_text(raw.get("name"), "Category"))


def table_from_api(raw: dict[str, Any]) -> DiningTable:
    try:
        capacity = int(raw.get("capacity") or 0)
    except (TypeError, ValueError):
        capacity = 0
    return DiningTable(
        table_id=_text(raw.get("id")),
        table_number=_text(raw.get("table_number")),
        capacity=capacity,
        location=raw.get("location"),
        status=_text(raw.get("status"), "available"),
    )


def user_from_api(raw: dict[str, Any]) -> StaffUser:
    return StaffUser(
        user_id=_text(raw.get("id") or raw.get("sub")),
        name=_text(raw.get("name"), "Staff"),
        email=_text(raw.get("email")),
        role=_text(raw.get("role")),
    )


def order_line_from_api(raw: dict[str, Any]) -> OrderLine:
    product = raw.get("product") or raw.get("Product") or {}
    name = product.get("name") or raw.get("name") or raw.get("product_name") or "Item"
    quantity = raw.get("quantity", raw.get("qty", 1))
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        quantity = 1

    unit_price = ZERO
    for key in ("unit_price", "price"):
        if raw.get(key) is not None:
            unit_price = to_decimal(raw[key])
            break
    else:
        unit_price = to_decimal(product.get("price"))

    if raw.get("total_price") is not None:
        line_total = to_decimal(raw["total_price"])
    else:
        line_total = unit_price * quantity

    return OrderLine(
        name=_text(name),
        quantity=quantity,
        unit_price=unit_price,
        line_total=line_total,
        item_id=_text(raw.get("product_id") or product.get("id")) or None,
    )


def order_from_api(raw: dict[str, Any]) -> SubmittedOrder:
    """Build a SubmittedOrder from an order payload.

    The backend has shipped a few payload shapes over time (``items`` vs
    ``OrderItems``, ``table`` vs ``RestaurantTable``, ``price`` vs
    ``total_amount``); all of them are accepted here so the rest of the
    client only deals with one model.
    """
    raw_items = raw.get("items") or raw.get("OrderItems") or []
    lines = tuple(order_line_from_api(item) for item in raw_items)

    raw_table = raw.get("table") or raw.get("RestaurantTable")
    table = table_from_api(raw_table) if isinstance(raw_table, dict) else None
    if table is None and raw.get("table_id"):
        table = DiningTable(table_id=_text(raw["table_id"]), table_number="")

    total = None
    for key in ("price", "total_amount", "total"):
        if raw.get(key) is not None:
            total = to_decimal(raw[key])
            break
    if total is None:
        total = sum((line.line_total for line in lines), ZERO)

    return SubmittedOrder(
        order_id=_text(raw.get("id")),
        order_number=_text(raw.get("order_number")),
        order_type=normalize_order_type(raw.get("order_type")),
        status=_text(raw.get("status"), "confirmed"),
        computed_total=total,
        table=table,
        lines=lines,
        notes=_text(raw.get("notes")),
        created_at=_text(raw.get("created_at")),
    )


def payment_from_api(raw: dict[str, Any], fallback_method: str, fallback_amount: Any) -> PaymentResult:
    amount = raw.get("settled_amount", raw.get("amount"))
    return PaymentResult(
        payment_id=_text(raw.get("id")),
        status=_text(raw.get("status"), "completed"),
        settled_amount=to_decimal(amount if amount is not None else fallback_amount),
        method=_text(raw.get("payment_method"), fallback_method),
        reference_number=raw.get("reference_number"),
    )


def filter_menu(items: Iterable[MenuItem], query: str, category_id: str = ALL_CATEGORIES) -> list[MenuItem]:
    """Available items whose name starts with the query, optionally within one category."""
    q = query.strip().lower()
    return [
        item
        for item in items
        if item.is_available
        and item.name.lower().startswith(q)
        and (category_id == ALL_CATEGORIES or item.category_id == category_id)
    ]


def filter_tables(tables: Iterable[DiningTable], query: str) -> list[DiningTable]:
    """Tables whose number or capacity starts with the typed digits."""
    q = query.strip()
    if not q:
        return list(tables)
    return [table for table in tables if table.table_number.startswith(q) or str(table.capacity).startswith(q)]
