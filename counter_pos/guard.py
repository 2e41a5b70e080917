"""Client-side submission preconditions for a cart.

These only gate the submit action in the UI; the backend validates again and
has the final word.
"""

from __future__ import annotations

from counter_pos.cart import Cart
from counter_pos.constant import ORDER_TYPE_DINE_IN


def submission_blocker(cart: Cart) -> str | None:
    """Return why the cart cannot be submitted yet, or None if it can."""
    if not cart.lines:
        return "Add at least one item to the cart"
    if cart.order_type == ORDER_TYPE_DINE_IN and cart.table is None:
        return "Select a table for dine-in orders"
    return None


def can_submit(cart: Cart) -> bool:
    return submission_blocker(cart) is None
