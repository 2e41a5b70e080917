"""Domain models for counter-pos."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class MenuItem:
    """A sellable menu item with its client-known price."""

    item_id: str
    name: str
    unit_price: Decimal
    category_id: str | None = None
    is_available: bool = True


@dataclass(frozen=True)
class Category:
    category_id: str
    name: str


@dataclass(frozen=True)
class DiningTable:
    """A table that dine-in orders are assigned to."""

    table_id: str
    table_number: str
    capacity: int = 0
    location: str | None = None
    status: str = "available"


@dataclass(frozen=True)
class StaffUser:
    user_id: str
    name: str
    email: str = ""
    role: str = ""


@dataclass
class CartLine:
    """One menu item and how many of it the cart holds (always >= 1)."""

    menu_item: MenuItem
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.menu_item.unit_price * self.quantity


@dataclass(frozen=True)
class OrderLine:
    """A server-priced line of a submitted order."""

    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    item_id: str | None = None


@dataclass(frozen=True)
class SubmittedOrder:
    """Read-only copy of the backend's authoritative order record."""

    order_id: str
    order_number: str
    order_type: str
    status: str
    computed_total: Decimal
    table: DiningTable | None = None
    lines: tuple[OrderLine, ...] = ()
    notes: str = ""
    created_at: str = ""

    @property
    def display_number(self) -> str:
        return self.order_number or self.order_id


@dataclass(frozen=True)
class PaymentAttempt:
    """The single in-flight payment request for a selected order."""

    order_id: str
    method: str
    amount: Decimal
    reference_number: str | None = None


@dataclass(frozen=True)
class PaymentResult:
    payment_id: str
    status: str
    settled_amount: Decimal
    method: str
    reference_number: str | None = None


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    quantity: int
    line_total: Decimal


@dataclass(frozen=True)
class Receipt:
    """Printable projection of a finalized order and its settled payment."""

    order_id: str
    order_label: str
    order_type: str
    table_label: str | None
    lines: tuple[ReceiptLine, ...]
    grand_total: Decimal
    payment: PaymentResult | None = None
    notes: str = ""
