from dataclasses import replace
from decimal import Decimal

import pytest

from counter_pos.models import PaymentResult
from counter_pos.printer import receipt_rows
from counter_pos.receipt import ReceiptComposer, build_receipt, render_receipt_text


@pytest.mark.asyncio
async def test_compose_fetches_canonical_order(fake_api, pending_order):
    composer = ReceiptComposer(fake_api)

    receipt = await composer.compose("o-24")

    assert fake_api.calls_to("get_order") == [("get_order", "o-24")]
    assert receipt.order_label == "0042"
    assert receipt.table_label == "5"
    assert [(line.name, line.quantity, line.line_total) for line in receipt.lines] == [
        ("Burger", 2, Decimal("16.00")),
        ("Fries", 1, Decimal("8.00")),
    ]
    assert receipt.grand_total == Decimal("24.00")


@pytest.mark.asyncio
async def test_missing_order_is_swallowed(fake_api, printed):
    composer = ReceiptComposer(fake_api, printer=printed.append)

    assert await composer.compose_and_print("gone") is None
    assert printed == []
    assert composer.last_print_error is None


@pytest.mark.asyncio
async def test_printer_failure_keeps_receipt(fake_api, pending_order):
    def broken_printer(receipt):
        raise RuntimeError("USB device not found")

    composer = ReceiptComposer(fake_api, printer=broken_printer)

    receipt = await composer.compose_and_print("o-24")

    assert receipt is not None
    assert str(composer.last_print_error) == "USB device not found"


def test_render_receipt_text(pending_order):
    payment = PaymentResult("pay-1", "completed", Decimal("24.00"), "card", "TXN123")

    lines = render_receipt_text(build_receipt(pending_order, payment), width=32)

    assert lines[0].strip() == "RECEIPT"
    assert "Order #: 0042" in lines
    assert "Type: Dine-In" in lines
    assert "Table: 5" in lines
    assert lines[5] == "2 x Burger" + " " * 16 + "$16.00"
    assert "TOTAL" + " " * 21 + "$24.00" in lines
    assert "Ref: TXN123" in lines
    assert all(len(line) <= 32 for line in lines)


def test_takeout_receipt_has_no_table(pending_order):
    order = replace(pending_order, order_type="takeout", table=None, notes="extra sauce")

    lines = render_receipt_text(build_receipt(order))

    assert "Table: -" in lines
    assert "Notes: extra sauce" in lines
    assert not any(line.startswith("Paid") for line in lines)


def test_receipt_rows_for_printer(pending_order):
    payment = PaymentResult("pay-1", "completed", Decimal("30"), "cash")

    rows = receipt_rows(build_receipt(pending_order, payment))

    assert rows == [
        ("2 x Burger", "$16.00"),
        ("1 x Fries", "$8.00"),
        ("TOTAL", "$24.00"),
        ("Paid (Cash)", "$30.00"),
    ]
