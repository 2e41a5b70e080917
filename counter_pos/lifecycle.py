"""Cart submission and the shared pool of orders awaiting payment."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from counter_pos.api import ApiClient
from counter_pos.cart import Cart
from counter_pos.config import PAYABLE_ORDER_STATUS, POOL_REFRESH_SECONDS
from counter_pos.constant import ORDER_TYPE_DINE_IN
from counter_pos.errors import CounterError, ValidationError
from counter_pos.guard import submission_blocker
from counter_pos.models import SubmittedOrder

logger = logging.getLogger(__name__)


class SubmitState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    SUBMIT_FAILED = "submit_failed"


class PayableOrdersPool:
    """Cached read of the orders the counter can take payment for.

    Shared read-only by the order and payment panels. Any mutation elsewhere
    calls ``invalidate()``; the next ``fetch()`` goes back to the server.
    """

    def __init__(
        self,
        api: ApiClient,
        status: str = PAYABLE_ORDER_STATUS,
        max_age: float = POOL_REFRESH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api = api
        self.status = status
        self.max_age = max_age
        self._clock = clock
        self.orders: list[SubmittedOrder] = []
        self._fetched_at: float | None = None

    @property
    def is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self.max_age

    def invalidate(self) -> None:
        self._fetched_at = None

    async def fetch(self, force: bool = False) -> list[SubmittedOrder]:
        if not force and not self.is_stale:
            return self.orders
        orders = await self.api.list_payable_orders(self.status)
        self.orders = orders
        self._fetched_at = self._clock()
        logger.debug("pool_fetched status=%s count=%d", self.status, len(orders))
        return orders

    def find(self, order_id: str) -> SubmittedOrder | None:
        for order in self.orders:
            if order.order_id == order_id:
                return order
        return None

    def order_for_table(self, table_id: str) -> SubmittedOrder | None:
        for order in self.orders:
            if order.table is not None and order.table.table_id == table_id:
                return order
        return None


class OrderLifecycleController:
    """Moves the cart through EDITING -> SUBMITTING -> SUBMITTED | SUBMIT_FAILED.

    SUBMITTING doubles as the mutex against duplicate submits. On success the
    cart is reset and the controller is back in EDITING; on failure the cart is
    left exactly as it was.
    """

    def __init__(
        self,
        api: ApiClient,
        pool: PayableOrdersPool,
        cart: Cart | None = None,
        on_change: Callable[[SubmitState], None] | None = None,
    ) -> None:
        self.api = api
        self.pool = pool
        self.cart = cart if cart is not None else Cart()
        self.on_change = on_change
        self.state = SubmitState.EDITING
        self.last_order: SubmittedOrder | None = None
        self.last_error: CounterError | None = None

    def _transition(self, state: SubmitState) -> None:
        logger.debug("order_state from=%s to=%s", self.state.value, state.value)
        self.state = state
        if self.on_change is not None:
            self.on_change(state)

    @property
    def is_submitting(self) -> bool:
        return self.state is SubmitState.SUBMITTING

    def blocker(self) -> str | None:
        if self.is_submitting:
            return "Order is already being submitted"
        return submission_blocker(self.cart)

    @property
    def can_submit(self) -> bool:
        return self.blocker() is None

    def open_order(self) -> SubmittedOrder | None:
        """Unpaid order already running at the cart's table, if any."""
        cart = self.cart
        if cart.order_type != ORDER_TYPE_DINE_IN or cart.table is None:
            return None
        return self.pool.order_for_table(cart.table.table_id)

    def set_order_type(self, order_type: str) -> None:
        self._ensure_editable()
        self.cart.set_order_type(order_type)

    def cancel_draft(self) -> None:
        self._ensure_editable()
        self.cart.reset()
        self.last_error = None
        if self.state is not SubmitState.EDITING:
            self._transition(SubmitState.EDITING)

    def _ensure_editable(self) -> None:
        if self.is_submitting:
            raise ValidationError("Wait for the current submission to finish")

    async def submit(self) -> SubmittedOrder:
        """Send the current cart to the backend.

        A dine-in cart whose table already has an unpaid order adds its lines
        to that order; otherwise a new order is created. Raises
        ValidationError if the cart fails the guard (no request is made) and
        re-raises backend ValidationError/ServiceError after moving to
        SUBMIT_FAILED.
        """
        reason = self.blocker()
        if reason is not None:
            raise ValidationError(reason)

        cart = self.cart
        table_id = cart.table.table_id if cart.order_type == ORDER_TYPE_DINE_IN and cart.table else None
        line_items = [(line.menu_item.item_id, line.quantity) for line in cart.lines]
        open_order = self.open_order()
        logger.info(
            "submit_enter type=%s table=%s lines=%d advisory_total=%s open_order=%s",
            cart.order_type,
            table_id,
            len(line_items),
            cart.total(),
            open_order.order_id if open_order else None,
        )

        self._transition(SubmitState.SUBMITTING)
        try:
            if open_order is not None:
                order = await self.api.update_counter_order(open_order.order_id, line_items, cart.notes or None)
            else:
                order = await self.api.create_order(cart.order_type, table_id, line_items, cart.notes or None)
        except CounterError as exc:
            self.last_error = exc
            logger.warning("submit_failed error=%r", exc)
            self._transition(SubmitState.SUBMIT_FAILED)
            raise

        self.last_order = order
        self.last_error = None
        self._transition(SubmitState.SUBMITTED)
        cart.reset()
        self.pool.invalidate()
        logger.info("submit_ok order_id=%s number=%s total=%s", order.order_id, order.order_number, order.computed_total)

        try:
            await self.pool.fetch(force=True)
        except CounterError as exc:
            # The order exists server-side; a stale pool is refreshed on the next fetch.
            logger.warning("pool_refresh_failed after=submit error=%r", exc)

        self._transition(SubmitState.EDITING)
        return order
