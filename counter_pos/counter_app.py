"""Main Textual app class: order-creation and payment panels."""

from __future__ import annotations

import logging
from typing import Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import ContentSwitcher, Header, Static

from counter_pos.api import ApiClient
from counter_pos.config import POOL_REFRESH_SECONDS, SESSION_CHECK_SECONDS
from counter_pos.constant import ALL_CATEGORIES, ORDER_TYPE_DINE_IN, ORDER_TYPE_LABELS, ORDER_TYPES
from counter_pos.data import filter_menu
from counter_pos.errors import AuthError, CounterError, ServiceError, ValidationError
from counter_pos.field_modal import FieldEntryModal, amount_chars, reference_chars
from counter_pos.lifecycle import OrderLifecycleController, PayableOrdersPool, SubmitState
from counter_pos.models import Category, DiningTable, MenuItem, PaymentResult, Receipt, SubmittedOrder
from counter_pos.money import format_money
from counter_pos.notes_modal import NotesModal
from counter_pos.payment import PaymentReconciler, PaymentState
from counter_pos.printer import check_printer_dependencies
from counter_pos.receipt import ReceiptComposer
from counter_pos.rendering import (
    format_cart_line,
    format_menu_item,
    format_method_choices,
    format_order_lines,
    format_pending_order,
    order_type_badge,
)
from counter_pos.session import SessionContext, establish_session
from counter_pos.table_modal import TablePickerModal

logger = logging.getLogger(__name__)

ORDER_PANEL = "order-panel"
PAYMENT_PANEL = "payment-panel"


class CounterApp(App):
    """Counter checkout: build a cart, submit it, then take payment for pending orders."""

    TITLE = "Counter"
    SUB_TITLE = "Create orders and process payments"

    CSS = """
    Screen {
        layout: vertical;
    }

    #panels {
        height: 1fr;
    }

    #order-panel, #payment-panel {
        height: 1fr;
    }

    #cart-pane, #pending-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #search-pane, #payment-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #results, #cart-list, #pending-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-meta, #cart-total {
        height: auto;
        margin-bottom: 1;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    panel = reactive(ORDER_PANEL)
    input_state = reactive("normal")
    search_query = reactive("")
    selected_index = reactive(0)
    cart_selected_index = reactive(None)
    pending_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next"),
        ("up", "cycle_results(-1)", "Previous"),
        ("down", "cycle_results(1)", "Next"),
        ("enter", "confirm", "Add / Select"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "submit", "Submit", priority=True),
        Binding("ctrl+t", "toggle_panel", "Orders / Payments", priority=True),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        api: ApiClient,
        printer: Callable[[Receipt], None] | None = None,
        token: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> None:
        super().__init__()
        self.api = api
        self.printer = printer
        self._token = token
        self._email = email
        self._password = password
        self.session: SessionContext | None = None

        self.pool = PayableOrdersPool(api)
        self.controller = OrderLifecycleController(api, self.pool, on_change=self._on_order_state)
        self.composer = ReceiptComposer(api, printer)
        self.reconciler = PaymentReconciler(api, self.pool, on_change=self._on_payment_state)

        self.menu_items: list[MenuItem] = []
        self.categories: list[Category] = []
        self.tables: list[DiningTable] = []
        self.category_index = 0
        self.system_status = ""
        self._cancel_armed_for: str | None = None

    @property
    def cart(self):
        return self.controller.cart

    def compose(self) -> ComposeResult:
        yield Header()
        with ContentSwitcher(initial=ORDER_PANEL, id="panels"):
            with Horizontal(id=ORDER_PANEL):
                with Vertical(id="cart-pane"):
                    yield Static("Cart", classes="pane-title")
                    yield Static(id="cart-meta")
                    yield Static("(no items yet)", id="cart-list")
                    yield Static(id="cart-total")
                with Vertical(id="search-pane"):
                    yield Static(id="search-bar")
                    yield Static(id="results")
            with Horizontal(id=PAYMENT_PANEL):
                with Vertical(id="pending-pane"):
                    yield Static("Awaiting payment", classes="pane-title")
                    yield Static("(no pending orders)", id="pending-list")
                with Vertical(id="payment-pane"):
                    yield Static("Payment", classes="pane-title")
                    yield Static(id="payment-form")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        if self.printer is None:
            self.system_status = "Receipt printing off"
        else:
            _, self.system_status = check_printer_dependencies()
        logger.info("on_mount printer_status=%r", self.system_status)
        self.set_interval(POOL_REFRESH_SECONDS, self._pool_tick)
        self.set_interval(SESSION_CHECK_SECONDS, self._check_session)
        self._refresh_all()
        self.run_worker(self._start_session(), exclusive=True, group="session")

    async def on_unmount(self) -> None:
        await self.api.aclose()

    # Session

    async def _start_session(self) -> None:
        try:
            if self._token:
                session = establish_session(self._token)
                self.api.attach_session(session)
            elif self._email and self._password:
                session = await self.api.login(self._email, self._password)
            else:
                self._set_status("No credentials: set COUNTER_API_TOKEN or COUNTER_API_EMAIL/COUNTER_API_PASSWORD")
                return
        except CounterError as exc:
            logger.warning("session_failed error=%r", exc)
            self._token = None
            self.notify(exc.message, title="Sign-in failed", severity="error", timeout=10)
            self._set_status(f"Not signed in: {exc.message}")
            return

        self.session = session
        self.sub_title = f"{session.user.name} ({session.user.role or 'staff'})"
        self._set_status("Signed in")
        await self._load_reference_data()

    def handle_unauthorized(self) -> None:
        """Auth-failure strategy handed to the request pipeline."""
        self._sign_out("The server rejected the session")

    def _check_session(self) -> None:
        if self.session is not None and self.session.is_expired():
            self._sign_out("Session expired")

    def _sign_out(self, reason: str) -> None:
        if self.session is None:
            return
        logger.info("sign_out reason=%r", reason)
        self.session = None
        self._token = None
        self.api.detach_session()
        self.sub_title = "Signed out"
        self.notify(reason, title="Signed out", severity="error", timeout=10)
        self._set_status(f"Signed out: {reason}")
        if self._email and self._password:
            self.run_worker(self._start_session(), exclusive=True, group="session")

    async def _load_reference_data(self) -> None:
        try:
            self.menu_items = await self.api.list_menu_items()
            self.categories = await self.api.list_categories()
            self.tables = await self.api.list_tables()
        except AuthError:
            return
        except CounterError as exc:
            logger.warning("reference_load_failed error=%r", exc)
            self.notify(exc.message, title="Could not load menu", severity="error")
        await self._load_pool(force=True)
        self._refresh_all()

    async def _load_pool(self, force: bool = False) -> None:
        if self.session is None:
            return
        try:
            await self.pool.fetch(force=force)
        except AuthError:
            return
        except CounterError as exc:
            logger.warning("pool_load_failed error=%r", exc)
            self.notify(exc.message, title="Could not load pending orders", severity="warning")
        self._sync_selection_with_pool()
        self._refresh_payment()

    async def _reload_tables(self) -> None:
        try:
            self.tables = await self.api.list_tables()
        except AuthError:
            return
        except CounterError as exc:
            logger.warning("tables_reload_failed error=%r", exc)

    def _pool_tick(self) -> None:
        self.pool.invalidate()
        if self.session is not None:
            self.run_worker(self._load_pool(), exclusive=True, group="pool")

    def _sync_selection_with_pool(self) -> None:
        selected = self.reconciler.selected
        if selected is None or self.reconciler.is_submitting or self.reconciler.cancelling:
            return
        if self.pool.find(selected.order_id) is None:
            self.reconciler.clear_selection()
            self._set_status(f"Order #{selected.display_number} is no longer awaiting payment")

    # State callbacks

    def _on_order_state(self, state: SubmitState) -> None:
        self._refresh_cart()

    def _on_payment_state(self, state: PaymentState) -> None:
        self._refresh_payment()

    # Keys

    def _modal_open(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    def on_key(self, event: Key) -> None:
        if self._modal_open():
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return
        char = event.character
        if not (char.isalnum() or char == " "):
            return

        if self.panel == ORDER_PANEL and self.input_state == "active":
            self.search_query += char
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        key = char.lower()
        if self.panel == ORDER_PANEL:
            handled = self._handle_order_key(key)
        else:
            handled = self._handle_payment_key(key)
        if handled:
            event.stop()

    def _handle_order_key(self, key: str) -> bool:
        if key == "s":
            self.input_state = "active"
            self.search_query = ""
            self.selected_index = 0
            self._refresh_search()
            return True
        if key == "j":
            self._move_cart_selection(1)
            return True
        if key == "k":
            self._move_cart_selection(-1)
            return True
        if key == "a":
            self._change_selected_line(1)
            return True
        if key == "d":
            self._change_selected_line(-1)
            return True
        if key == "o":
            self._cycle_order_type()
            return True
        if key == "t":
            self._open_table_picker()
            return True
        if key == "u":
            if not self._cart_locked():
                self.cart.clear_table()
                self._refresh_cart()
            return True
        if key == "n":
            if not self._cart_locked():
                self.push_screen(NotesModal(self.cart, on_change=self._refresh_cart))
            return True
        if key == "c":
            self._cycle_category()
            return True
        if key == "x":
            if not self._cart_locked():
                self.controller.cancel_draft()
                self.cart_selected_index = None
                self._set_status("Cart cleared")
                self._refresh_cart()
            return True
        if key == "r":
            if self.session is not None:
                self.run_worker(self._load_reference_data(), exclusive=True, group="reference")
            return True
        return False

    def _handle_payment_key(self, key: str) -> bool:
        if key != "c":
            self._cancel_armed_for = None
        if key == "j":
            self._move_pending_selection(1)
            return True
        if key == "k":
            self._move_pending_selection(-1)
            return True
        if key == "m":
            self._edit_payment(lambda: self.reconciler.cycle_method())
            return True
        if key == "a":
            self._open_amount_entry()
            return True
        if key == "f":
            self._open_reference_entry()
            return True
        if key == "x":
            self._edit_payment(self.reconciler.clear_selection)
            return True
        if key == "c":
            self._arm_or_cancel_order()
            return True
        if key == "r":
            self.pool.invalidate()
            self.run_worker(self._load_pool(force=True), exclusive=True, group="pool")
            return True
        return False

    # Actions

    def action_toggle_panel(self) -> None:
        if self._modal_open():
            return
        self.input_state = "normal"
        self.panel = PAYMENT_PANEL if self.panel == ORDER_PANEL else ORDER_PANEL
        self.query_one("#panels", ContentSwitcher).current = self.panel
        if self.panel == PAYMENT_PANEL and self.pool.is_stale:
            self.run_worker(self._load_pool(), exclusive=True, group="pool")
        self._refresh_all()

    def action_cancel_active_mode(self) -> None:
        if self._modal_open():
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if self._modal_open():
            return
        if self.panel == PAYMENT_PANEL:
            self._move_pending_selection(delta)
            return
        if self.input_state != "active":
            self._move_cart_selection(delta)
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_confirm(self) -> None:
        if self._modal_open():
            return
        if self.panel == PAYMENT_PANEL:
            self._select_highlighted_order()
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results or self._cart_locked():
            return
        item = results[self.selected_index]
        self.cart.add_line(item)
        self.cart_selected_index = self._cart_index_of(item.item_id)
        self._refresh_cart()
        self._refresh_results(results)

    def action_backspace_query(self) -> None:
        if self._modal_open():
            return
        if self.panel != ORDER_PANEL or self.input_state != "active":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def action_submit(self) -> None:
        if self._modal_open():
            return
        if self.panel == ORDER_PANEL:
            self._submit_order()
        else:
            self._submit_payment()

    # Order panel

    def _cart_locked(self) -> bool:
        if self.controller.is_submitting:
            self._set_status("Order is being submitted")
            return True
        return False

    def _filtered_results(self) -> list[MenuItem]:
        return filter_menu(self.menu_items, self.search_query, self._current_category_id())

    def _current_category_id(self) -> str:
        if self.category_index == 0 or self.category_index > len(self.categories):
            return ALL_CATEGORIES
        return self.categories[self.category_index - 1].category_id

    def _current_category_name(self) -> str:
        if self._current_category_id() == ALL_CATEGORIES:
            return "All"
        return self.categories[self.category_index - 1].name

    def _cycle_category(self) -> None:
        self.category_index = (self.category_index + 1) % (len(self.categories) + 1)
        self.selected_index = 0
        self._refresh_search()

    def _cart_index_of(self, item_id: str) -> int | None:
        for idx, line in enumerate(self.cart.lines):
            if line.menu_item.item_id == item_id:
                return idx
        return None

    def _move_cart_selection(self, delta: int) -> None:
        lines = self.cart.lines
        if not lines:
            return

        if self.cart_selected_index is None:
            self.cart_selected_index = 0 if delta > 0 else len(lines) - 1
        else:
            self.cart_selected_index = (self.cart_selected_index + delta) % len(lines)
        self._refresh_cart()

    def _change_selected_line(self, delta: int) -> None:
        if self.cart_selected_index is None or self._cart_locked():
            return
        lines = self.cart.lines
        if not (0 <= self.cart_selected_index < len(lines)):
            self.cart_selected_index = None
            self._refresh_cart()
            return

        line = lines[self.cart_selected_index]
        if delta > 0:
            self.cart.add_line(line.menu_item)
        else:
            self.cart.remove_line(line.menu_item.item_id)
        if not self.cart.lines:
            self.cart_selected_index = None
        else:
            self.cart_selected_index = min(self.cart_selected_index, len(self.cart.lines) - 1)
        self._refresh_cart()

    def _cycle_order_type(self) -> None:
        if self._cart_locked():
            return
        idx = ORDER_TYPES.index(self.cart.order_type)
        new_type = ORDER_TYPES[(idx + 1) % len(ORDER_TYPES)]
        had_table = self.cart.table is not None
        self.controller.set_order_type(new_type)
        if had_table and self.cart.table is None:
            self.cart_selected_index = None
            self._set_status("Table and cart cleared for non dine-in order")
        else:
            self._set_status(f"Order type: {ORDER_TYPE_LABELS[new_type]}")
        self._refresh_cart()

    def _open_table_picker(self) -> None:
        if self._cart_locked():
            return
        if self.cart.order_type != ORDER_TYPE_DINE_IN:
            self._set_status("Tables apply to dine-in orders only (O to change type)")
            return
        if not self.tables:
            self._set_status("No tables loaded (R to reload)")
            return
        self.push_screen(TablePickerModal(self.tables, self.pool, self.cart.table), callback=self._on_table_picked)

    def _on_table_picked(self, table: DiningTable | None) -> None:
        if table is None:
            return
        try:
            self.cart.select_table(table)
        except ValidationError as exc:
            self._set_status(exc.message)
            return
        open_order = self.controller.open_order()
        if open_order is not None:
            self._set_status(f"Table {table.table_number} selected, items go to open order #{open_order.display_number}")
        else:
            self._set_status(f"Table {table.table_number} selected")
        self._refresh_cart()

    def _submit_order(self) -> None:
        if self.input_state != "normal":
            self._set_status("Submit only in NORMAL mode (Ctrl+C to exit search)")
            return
        reason = self.controller.blocker()
        if reason is not None:
            self._set_status(reason)
            return
        self.run_worker(self._submit_order_worker(), exclusive=True, group="order-submit")

    async def _submit_order_worker(self) -> None:
        open_order = self.controller.open_order()
        try:
            order = await self.controller.submit()
        except ValidationError as exc:
            self.notify(exc.message, title="Check input", severity="warning")
        except ServiceError as exc:
            self.notify(exc.message, title="Try again", severity="error")
        except AuthError:
            pass
        except CounterError as exc:
            self.notify(exc.message, title="Order not created", severity="error")
        else:
            self.cart_selected_index = None
            if open_order is not None:
                self.notify(
                    f"Items added to order #{order.display_number} ({format_money(order.computed_total)})",
                    title="Order updated",
                )
            else:
                self.notify(
                    f"Order #{order.display_number} created ({format_money(order.computed_total)})",
                    title="Order created",
                )
            self._set_status(f"Order #{order.display_number} awaiting payment")
            await self._reload_tables()
        self._refresh_all()

    # Payment panel

    def _move_pending_selection(self, delta: int) -> None:
        orders = self.pool.orders
        if not orders:
            return
        if self.pending_selected_index is None:
            self.pending_selected_index = 0 if delta > 0 else len(orders) - 1
        else:
            self.pending_selected_index = (self.pending_selected_index + delta) % len(orders)
        self._refresh_payment()

    def _highlighted_order(self) -> SubmittedOrder | None:
        idx = self.pending_selected_index
        if idx is None or not (0 <= idx < len(self.pool.orders)):
            return None
        return self.pool.orders[idx]

    def _select_highlighted_order(self) -> None:
        order = self._highlighted_order()
        if order is None:
            return
        self._edit_payment(lambda: self.reconciler.select(order))

    def _edit_payment(self, change: Callable[[], object]) -> None:
        try:
            change()
        except ValidationError as exc:
            self._set_status(exc.message)
        self._refresh_payment()

    def _open_amount_entry(self) -> None:
        if self.reconciler.selected is None:
            self._set_status("Select an order first")
            return
        self.push_screen(
            FieldEntryModal("Amount", "Amount tendered", self.reconciler.amount, accepts=amount_chars, max_length=10),
            callback=self._on_amount_entered,
        )

    def _on_amount_entered(self, value: str | None) -> None:
        if value is not None:
            self._edit_payment(lambda: self.reconciler.set_amount(value))

    def _open_reference_entry(self) -> None:
        if self.reconciler.selected is None:
            self._set_status("Select an order first")
            return
        self.push_screen(
            FieldEntryModal(
                "Reference number",
                "Card slip / transfer reference",
                self.reconciler.reference,
                accepts=reference_chars,
                required=self.reconciler.reference_required,
            ),
            callback=self._on_reference_entered,
        )

    def _on_reference_entered(self, value: str | None) -> None:
        if value is not None:
            self._edit_payment(lambda: self.reconciler.set_reference(value))

    def _submit_payment(self) -> None:
        reason = self.reconciler.blocker()
        if reason is not None:
            self._set_status(reason)
            return
        self.run_worker(self._submit_payment_worker(), exclusive=True, group="payment-submit")

    async def _submit_payment_worker(self) -> None:
        order = self.reconciler.selected
        label = order.display_number if order is not None else "?"
        try:
            result = await self.reconciler.submit()
        except ValidationError as exc:
            self.notify(exc.message, title="Check input", severity="warning")
        except ServiceError as exc:
            self.notify(exc.message, title="Try again", severity="error")
        except AuthError:
            pass
        except CounterError as exc:
            self.notify(exc.message, title="Payment failed", severity="error")
        else:
            self.pending_selected_index = None
            self.notify(f"Order #{label} paid {format_money(result.settled_amount)}", title="Payment processed")
            self._set_status(f"Order #{label} settled")
            if order is not None:
                self.run_worker(self._receipt_worker(order.order_id, result), group="receipt")
            await self._reload_tables()
        self._refresh_all()

    async def _receipt_worker(self, order_id: str, result: PaymentResult) -> None:
        await self.composer.compose_and_print(order_id, result)
        if self.composer.last_print_error is not None:
            self.notify(str(self.composer.last_print_error), title="Receipt not printed", severity="warning")

    def _arm_or_cancel_order(self) -> None:
        order = self.reconciler.selected
        if order is None:
            self._set_status("Select an order to cancel")
            return
        if self._cancel_armed_for != order.order_id:
            self._cancel_armed_for = order.order_id
            self._set_status(f"Press C again to cancel order #{order.display_number}")
            return
        self._cancel_armed_for = None
        self.run_worker(self._cancel_order_worker(), exclusive=True, group="order-cancel")

    async def _cancel_order_worker(self) -> None:
        try:
            order = await self.reconciler.cancel_selected()
        except AuthError:
            pass
        except CounterError as exc:
            self.notify(exc.message, title="Cancel failed", severity="error")
        else:
            self.pending_selected_index = None
            self.notify(f"Order #{order.display_number} was cancelled", title="Order cancelled")
            await self._reload_tables()
        self._refresh_all()

    # Rendering

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_status()

    def _refresh_all(self) -> None:
        self._refresh_cart()
        self._refresh_search()
        self._refresh_payment()
        self._refresh_status()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            half = rows // 2
            start = selected - half
            start = max(0, start)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_status(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        bar.update(self.system_status or "Ready")

    def _refresh_cart(self) -> None:
        try:
            meta_widget = self.query_one("#cart-meta", Static)
            list_widget = self.query_one("#cart-list", Static)
            total_widget = self.query_one("#cart-total", Static)
        except NoMatches:
            return

        cart = self.cart
        meta = order_type_badge(cart.order_type, with_label=True)
        if cart.order_type == ORDER_TYPE_DINE_IN:
            meta.append(f"  Table: {cart.table.table_number if cart.table else '(none, T to pick)'}")
            open_order = self.controller.open_order()
            if open_order is not None:
                meta.append(f"\nAdding to open order #{open_order.display_number}", style="bold #b23a48")
        if cart.notes:
            meta.append(f"\nNotes: {cart.notes}", style="italic")
        meta_widget.update(meta)

        lines = cart.lines
        if not lines:
            self.cart_selected_index = None
            list_widget.update("(no items yet)")
        else:
            if self.cart_selected_index is not None and self.cart_selected_index >= len(lines):
                self.cart_selected_index = len(lines) - 1

            start, end = self._window_bounds(len(lines), self._visible_rows(list_widget), self.cart_selected_index)
            text = Text()
            if start > 0:
                text.append("⋮\n", style="dim")
            for idx in range(start, end):
                if idx > start:
                    text.append("\n")
                pointer = "➤ " if idx == self.cart_selected_index else "  "
                text.append(pointer)
                text.append_text(format_cart_line(lines[idx]))
            if end < len(lines):
                text.append("\n⋮", style="dim")
            list_widget.update(text)

        total = Text()
        total.append(f"Total: {format_money(cart.total())}", style="bold")
        total.append(f"  ({cart.item_count()} items)\n", style="dim")
        if self.controller.is_submitting:
            total.append("Submitting…", style="bold yellow")
        else:
            reason = self.controller.blocker()
            if reason is None:
                total.append("Ctrl+S submit order", style="bold #5fbf72")
            else:
                total.append(f"Submit disabled: {reason}", style="dim")
        total_widget.update(total)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            bar.update(f"S search menu ({self._current_category_name()}). Ctrl+T payments.")
            return

        text = Text()
        text.append(f" {self._current_category_name()} ", style="bold reverse")
        text.append(f" {self.search_query}|")
        bar.update(text)

    def _refresh_results(self, results: list[MenuItem]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update(
                "J/K move  A/D +/- qty  O order type  T table  U clear table\n"
                "N notes  C category  X clear cart  R reload  Ctrl+S submit"
            )
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        start, end = self._window_bounds(len(results), self._visible_rows(results_widget), self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_menu_item(results[idx], self.cart.quantity_of(results[idx].item_id)))

        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)

    def _refresh_payment(self) -> None:
        try:
            list_widget = self.query_one("#pending-list", Static)
            form_widget = self.query_one("#payment-form", Static)
        except NoMatches:
            return

        orders = self.pool.orders
        selected = self.reconciler.selected
        if not orders:
            self.pending_selected_index = None
            list_widget.update("(no pending orders, R to refresh)")
        else:
            if self.pending_selected_index is not None and self.pending_selected_index >= len(orders):
                self.pending_selected_index = len(orders) - 1

            start, end = self._window_bounds(len(orders), self._visible_rows(list_widget), self.pending_selected_index)
            text = Text()
            if start > 0:
                text.append("⋮\n", style="dim")
            for idx in range(start, end):
                if idx > start:
                    text.append("\n")
                order = orders[idx]
                pointer = "➤ " if idx == self.pending_selected_index else "  "
                marker = "● " if selected is not None and selected.order_id == order.order_id else "  "
                text.append(pointer)
                text.append(marker, style="bold #5fbf72")
                text.append_text(format_pending_order(order))
            if end < len(orders):
                text.append("\n⋮", style="dim")
            list_widget.update(text)

        form_widget.update(self._payment_form_text())

    def _payment_form_text(self) -> Text:
        reconciler = self.reconciler
        order = reconciler.selected
        text = Text()
        if order is None:
            text.append("J/K move, Enter select an order to pay.\nR refresh list. Ctrl+T back to orders.")
            return text

        text.append_text(format_pending_order(order))
        text.append("\n")
        if order.lines:
            text.append_text(format_order_lines(order))
            text.append("\n")
        text.append(f"\nTotal due: {format_money(order.computed_total)}\n", style="bold")
        text.append("Method (M): ")
        text.append_text(format_method_choices(reconciler.method))
        text.append(f"\nAmount (A): {reconciler.amount or '-'}\n")
        if reconciler.reference_required:
            text.append(f"Reference (F): {reconciler.reference or '(required)'}\n")
        else:
            text.append("Reference: not needed for cash\n", style="dim")

        text.append("\n")
        if reconciler.is_submitting:
            text.append("Processing payment…", style="bold yellow")
        elif reconciler.cancelling:
            text.append("Cancelling order…", style="bold yellow")
        else:
            reason = reconciler.blocker()
            if reason is None:
                text.append("Ctrl+S process payment", style="bold #5fbf72")
            else:
                text.append(f"Payment disabled: {reason}", style="dim")
        text.append("\nX deselect  C C cancel order", style="dim")
        return text
