"""Receipt composition from the canonical order record."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from counter_pos.api import ApiClient
from counter_pos.config import RECEIPT_TEXT_WIDTH
from counter_pos.constant import ORDER_TYPE_LABELS, PAYMENT_METHOD_LABELS
from counter_pos.errors import CounterError
from counter_pos.models import PaymentResult, Receipt, ReceiptLine, SubmittedOrder
from counter_pos.money import format_money

logger = logging.getLogger(__name__)


def build_receipt(order: SubmittedOrder, payment: PaymentResult | None = None) -> Receipt:
    lines = tuple(ReceiptLine(name=line.name, quantity=line.quantity, line_total=line.line_total) for line in order.lines)
    table_label = None
    if order.table is not None:
        table_label = order.table.table_number or order.table.table_id
    grand_total = order.computed_total
    return Receipt(
        order_id=order.order_id,
        order_label=order.display_number,
        order_type=order.order_type,
        table_label=table_label,
        lines=lines,
        grand_total=grand_total,
        payment=payment,
        notes=order.notes,
    )


def _two_column(left: str, right: str, width: int) -> str:
    room = width - len(right) - 1
    if room < 1:
        return f"{left} {right}"
    if len(left) > room:
        left = left[: max(1, room - 1)] + "~"
    return f"{left:<{room}} {right}"


def render_receipt_text(receipt: Receipt, width: int = RECEIPT_TEXT_WIDTH) -> list[str]:
    """Lay a receipt out as fixed-width text lines."""
    rule = "-" * width
    out = [
        "RECEIPT".center(width).rstrip(),
        f"Order #: {receipt.order_label}",
        f"Type: {ORDER_TYPE_LABELS.get(receipt.order_type, receipt.order_type)}",
        f"Table: {receipt.table_label or '-'}",
        rule,
    ]
    for line in receipt.lines:
        out.append(_two_column(f"{line.quantity} x {line.name}", format_money(line.line_total), width))
    out.append(rule)
    out.append(_two_column("TOTAL", format_money(receipt.grand_total), width))

    payment = receipt.payment
    if payment is not None:
        method = PAYMENT_METHOD_LABELS.get(payment.method, payment.method)
        out.append(_two_column(f"Paid ({method})", format_money(payment.settled_amount), width))
        if payment.reference_number:
            out.append(f"Ref: {payment.reference_number}")
    if receipt.notes:
        out.append(f"Notes: {receipt.notes}")
    out.append("")
    out.append("Thank you for your order".center(width).rstrip())
    return out


class ReceiptComposer:
    """Fetch the settled order and hand its receipt to the printer.

    Best effort: any failure is logged and yields None, and nothing here
    ever raises back into the payment flow.
    """

    def __init__(self, api: ApiClient, printer: Callable[[Receipt], None] | None = None) -> None:
        self.api = api
        self.printer = printer
        self.last_print_error: Exception | None = None

    async def compose(self, order_id: str, payment: PaymentResult | None = None) -> Receipt | None:
        try:
            order = await self.api.get_order(order_id)
        except CounterError as exc:
            logger.warning("receipt_fetch_failed order_id=%s error=%r", order_id, exc)
            return None
        receipt = build_receipt(order, payment)
        logger.info("receipt_composed order_id=%s lines=%d", order_id, len(receipt.lines))
        return receipt

    async def compose_and_print(self, order_id: str, payment: PaymentResult | None = None) -> Receipt | None:
        self.last_print_error = None
        receipt = await self.compose(order_id, payment)
        if receipt is None or self.printer is None:
            return receipt
        try:
            await asyncio.to_thread(self.printer, receipt)
        except Exception as exc:
            self.last_print_error = exc
            logger.warning("receipt_print_failed order_id=%s error=%r", order_id, exc)
            return receipt
        logger.info("receipt_printed order_id=%s", order_id)
        return receipt
