"""Decimal money helpers.

Amounts are carried as unrounded ``Decimal`` values and only quantized to
cents when they are shown or sent as a typed amount.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from counter_pos.config import CURRENCY_SYMBOL
from counter_pos.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: object) -> Decimal:
    """Convert an API number (int, float, str or None) to Decimal without float drift."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion.
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


def format_amount(amount: Decimal) -> str:
    """Plain two-place amount, as pre-filled into an input field."""
    return f"{quantize(amount):.2f}"


def format_money(amount: Decimal) -> str:
    """Display amount with currency symbol and thousands separators."""
    value = quantize(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(value):,.2f}"


def parse_amount(text: str) -> Decimal:
    """Parse an operator-typed amount.

    Raises ValidationError for empty, unparseable or non-positive input.
    """
    raw = text.strip()
    if not raw:
        raise ValidationError("Amount is required")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"Amount {raw!r} is not a number") from None
    if not amount.is_finite() or amount <= ZERO:
        raise ValidationError("Amount must be greater than zero")
    return amount
