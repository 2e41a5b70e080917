from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from counter_pos.cart import Cart
from counter_pos.errors import NotFoundError
from counter_pos.lifecycle import OrderLifecycleController, PayableOrdersPool
from counter_pos.models import DiningTable, MenuItem, OrderLine, PaymentResult, SubmittedOrder
from counter_pos.payment import PaymentReconciler


class FakeApi:
    """In-memory stand-in for ApiClient with the same coroutine surface.

    Orders it creates land in ``payable`` until paid or cancelled. Set
    ``fail[<method name>]`` to an exception to make the next calls raise it.
    """

    def __init__(self, menu: list[MenuItem], tables: list[DiningTable]) -> None:
        self.menu = list(menu)
        self.tables = list(tables)
        self.categories = []
        self.orders: dict[str, SubmittedOrder] = {}
        self.payable: list[SubmittedOrder] = []
        self.server_prices: dict[str, Decimal] = {}
        self.fail: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self.session = None
        self.on_unauthorized = None
        self._next_id = 1

    def _enter(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def add_payable(self, order: SubmittedOrder) -> SubmittedOrder:
        self.orders[order.order_id] = order
        self.payable.append(order)
        if order.table is not None:
            self._set_table_status(order.table.table_id, "occupied")
        return order

    def _close(self, order_id: str) -> None:
        order = self.orders.get(order_id)
        self.payable = [o for o in self.payable if o.order_id != order_id]
        if order is not None and order.table is not None:
            self._set_table_status(order.table.table_id, "available")

    def _set_table_status(self, table_id: str, status: str) -> None:
        self.tables = [replace(t, status=status) if t.table_id == table_id else t for t in self.tables]

    def _price_lines(self, line_items) -> list[OrderLine]:
        by_id = {item.item_id: item for item in self.menu}
        lines = []
        for item_id, quantity in line_items:
            item = by_id[item_id]
            price = self.server_prices.get(item_id, item.unit_price)
            lines.append(OrderLine(item.name, quantity, price, price * quantity, item_id))
        return lines

    def attach_session(self, session) -> None:
        self.session = session

    def detach_session(self) -> None:
        self.session = None

    async def aclose(self) -> None:
        self.calls.append(("aclose",))

    async def login(self, email, password):
        self._enter("login", email, password)
        raise NotImplementedError

    async def list_menu_items(self):
        self._enter("list_menu_items")
        return list(self.menu)

    async def list_categories(self):
        self._enter("list_categories")
        return list(self.categories)

    async def list_tables(self):
        self._enter("list_tables")
        return list(self.tables)

    async def create_order(self, order_type, table_id, line_items, notes=None):
        line_items = list(line_items)
        self._enter("create_order", order_type, table_id, line_items, notes)
        lines = self._price_lines(line_items)
        table = next((t for t in self.tables if t.table_id == table_id), None)
        order = SubmittedOrder(
            order_id=f"o{self._next_id}",
            order_number=f"{1000 + self._next_id}",
            order_type=order_type,
            status="confirmed",
            computed_total=sum((line.line_total for line in lines), Decimal("0")),
            table=table,
            lines=tuple(lines),
            notes=notes or "",
        )
        self._next_id += 1
        return self.add_payable(order)

    async def update_counter_order(self, order_id, line_items, notes=None):
        line_items = list(line_items)
        self._enter("update_counter_order", order_id, line_items, notes)
        if order_id not in self.orders:
            raise NotFoundError(f"Order {order_id} not found")
        current = self.orders[order_id]
        lines = current.lines + tuple(self._price_lines(line_items))
        order = replace(
            current,
            lines=lines,
            computed_total=sum((line.line_total for line in lines), Decimal("0")),
            notes=notes or current.notes,
        )
        self.orders[order_id] = order
        self.payable = [order if o.order_id == order_id else o for o in self.payable]
        return order

    async def list_payable_orders(self, status="confirmed"):
        self._enter("list_payable_orders", status)
        return list(self.payable)

    async def get_order(self, order_id):
        self._enter("get_order", order_id)
        if order_id not in self.orders:
            raise NotFoundError(f"Order {order_id} not found")
        return self.orders[order_id]

    async def submit_payment(self, order_id, method, amount, reference_number=None):
        self._enter("submit_payment", order_id, method, amount, reference_number)
        self._close(order_id)
        return PaymentResult(
            payment_id=f"pay-{order_id}",
            status="completed",
            settled_amount=amount,
            method=method,
            reference_number=reference_number,
        )

    async def update_order_status(self, order_id, status, notes=None):
        self._enter("update_order_status", order_id, status, notes)
        self._close(order_id)


@pytest.fixture
def burger():
    return MenuItem("p1", "Burger", Decimal("8.00"), category_id="c1")


@pytest.fixture
def fries():
    return MenuItem("p2", "Fries", Decimal("3.50"), category_id="c2")


@pytest.fixture
def table5():
    return DiningTable("t5", "5", capacity=4)


@pytest.fixture
def fake_api(burger, fries, table5):
    return FakeApi([burger, fries], [table5, DiningTable("t12", "12", capacity=2)])


@pytest.fixture
def pool(fake_api):
    return PayableOrdersPool(fake_api)


@pytest.fixture
def cart():
    return Cart()


@pytest.fixture
def controller(fake_api, pool, cart):
    return OrderLifecycleController(fake_api, pool, cart)


@pytest.fixture
def printed():
    return []


@pytest.fixture
def reconciler(fake_api, pool):
    return PaymentReconciler(fake_api, pool)


@pytest.fixture
def pending_order(fake_api, table5):
    """A confirmed dine-in order totalling 24.00, already in the backend."""
    return fake_api.add_payable(
        SubmittedOrder(
            order_id="o-24",
            order_number="0042",
            order_type="dine_in",
            status="confirmed",
            computed_total=Decimal("24.00"),
            table=table5,
            lines=(
                OrderLine("Burger", 2, Decimal("8.00"), Decimal("16.00"), "p1"),
                OrderLine("Fries", 1, Decimal("8.00"), Decimal("8.00"), "p2"),
            ),
        )
    )
