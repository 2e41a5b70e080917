"""Static order, payment and status vocabulary."""

from __future__ import annotations

ORDER_TYPE_DINE_IN = "dine_in"
ORDER_TYPE_TAKEOUT = "takeout"
ORDER_TYPE_DELIVERY = "delivery"

ORDER_TYPES: tuple[str, ...] = (ORDER_TYPE_DINE_IN, ORDER_TYPE_TAKEOUT, ORDER_TYPE_DELIVERY)

ORDER_TYPE_LABELS: dict[str, str] = {
    ORDER_TYPE_DINE_IN: "Dine-In",
    ORDER_TYPE_TAKEOUT: "Takeout",
    ORDER_TYPE_DELIVERY: "Delivery",
}

# Older backend builds report takeout as "take_away".
ORDER_TYPE_ALIASES: dict[str, str] = {
    "take_away": ORDER_TYPE_TAKEOUT,
    "takeaway": ORDER_TYPE_TAKEOUT,
    "dinein": ORDER_TYPE_DINE_IN,
}

ORDER_TYPE_BADGES: dict[str, str] = {
    ORDER_TYPE_DINE_IN: "D",
    ORDER_TYPE_TAKEOUT: "T",
    ORDER_TYPE_DELIVERY: "V",
}

PAYMENT_METHOD_CASH = "cash"
PAYMENT_METHOD_CARD = "card"
PAYMENT_METHOD_OTHERS = "others"

PAYMENT_METHODS: tuple[str, ...] = (PAYMENT_METHOD_CASH, PAYMENT_METHOD_CARD, PAYMENT_METHOD_OTHERS)

PAYMENT_METHOD_LABELS: dict[str, str] = {
    PAYMENT_METHOD_CASH: "Cash",
    PAYMENT_METHOD_CARD: "Card",
    PAYMENT_METHOD_OTHERS: "Others",
}

ORDER_STATUS_CONFIRMED = "confirmed"
ORDER_STATUS_CANCELLED = "cancelled"

ORDER_STATUS_LABELS: dict[str, str] = {
    "pending": "Pending",
    "confirmed": "Confirmed",
    "preparing": "Preparing",
    "ready": "Ready",
    "served": "Served",
    "completed": "Completed",
    "cancelled": "Cancelled",
}

TABLE_STATUS_AVAILABLE = "available"
TABLE_STATUS_OCCUPIED = "occupied"

ALL_CATEGORIES = "all"
