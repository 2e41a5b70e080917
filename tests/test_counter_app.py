import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest

from counter_pos.counter_app import PAYMENT_PANEL, CounterApp


def make_token():
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    return jwt.encode({"sub": "u1", "name": "Ana", "role": "cashier", "exp": exp}, "test-secret", algorithm="HS256")


@pytest.mark.asyncio
async def test_order_then_payment_flow(fake_api):
    app = CounterApp(fake_api, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert app.session is not None
        assert fake_api.session is app.session
        assert [item.name for item in app.menu_items] == ["Burger", "Fries"]

        await pilot.press("o")
        assert app.cart.order_type == "takeout"

        await pilot.press("s", "f", "enter", "enter")
        assert app.cart.snapshot() == (("p2", 2),)
        app.action_cancel_active_mode()

        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert app.cart.is_empty()
        (order,) = app.pool.orders
        assert order.computed_total == Decimal("7.00")

        await pilot.press("ctrl+t", "down", "enter")
        assert app.panel == PAYMENT_PANEL
        assert app.reconciler.selected == order
        assert app.reconciler.amount == "7.00"

        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert fake_api.calls_to("submit_payment") == [("submit_payment", order.order_id, "cash", Decimal("7.00"), None)]
        assert app.pool.orders == []
        assert app.reconciler.selected is None


@pytest.mark.asyncio
async def test_submit_stays_disabled_for_dine_in_without_table(fake_api):
    app = CounterApp(fake_api, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.press("s", "b", "enter")
        app.action_cancel_active_mode()

        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()

        assert fake_api.calls_to("create_order") == []
        assert app.system_status == "Select a table for dine-in orders"
        assert app.cart.snapshot() == (("p1", 1),)


@pytest.mark.asyncio
async def test_without_credentials_no_backend_calls(fake_api):
    app = CounterApp(fake_api)
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert app.session is None
        assert fake_api.calls == []
        assert app.system_status.startswith("No credentials")


@pytest.mark.asyncio
async def test_unauthorized_signs_out(fake_api):
    app = CounterApp(fake_api, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()

        app.handle_unauthorized()
        await pilot.pause()

        assert app.session is None
        assert fake_api.session is None
        assert app.system_status.startswith("Signed out")


@pytest.mark.asyncio
async def test_slow_printer_does_not_hold_up_payment(fake_api):
    release = threading.Event()
    printed = []

    def printer(receipt):
        release.wait(timeout=5)
        printed.append(receipt)

    app = CounterApp(fake_api, printer=printer, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.press("o")
        app.cart.add_line(app.menu_items[0])
        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()

        await pilot.press("ctrl+t", "down", "enter", "ctrl+s")
        await app.workers.wait_for_complete([w for w in app.workers if w.group == "payment-submit"])
        await pilot.pause()

        assert len(fake_api.calls_to("submit_payment")) == 1
        assert app.pool.orders == []
        assert app.reconciler.selected is None
        assert printed == []

        release.set()
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert [receipt.order_id for receipt in printed] == ["o1"]


@pytest.mark.asyncio
async def test_tables_reload_after_order_and_payment(fake_api):
    app = CounterApp(fake_api, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        assert len(fake_api.calls_to("list_tables")) == 1
        app.cart.add_line(app.menu_items[0])
        app.cart.select_table(app.tables[0])

        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        assert len(fake_api.calls_to("list_tables")) == 2
        assert app.tables[0].status == "occupied"

        await pilot.press("ctrl+t", "down", "enter", "ctrl+s")
        await app.workers.wait_for_complete()
        assert len(fake_api.calls_to("list_tables")) == 3
        assert app.tables[0].status == "available"


@pytest.mark.asyncio
async def test_tables_reload_after_cancel(fake_api, pending_order):
    app = CounterApp(fake_api, token=make_token())
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        assert app.tables[0].status == "occupied"

        await pilot.press("ctrl+t", "down", "enter", "c", "c")
        await app.workers.wait_for_complete()

        assert fake_api.calls_to("update_order_status") == [("update_order_status", "o-24", "cancelled", None)]
        assert len(fake_api.calls_to("list_tables")) == 2
        assert app.tables[0].status == "available"
