"""Taking payment for a pending order."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from counter_pos.api import ApiClient
from counter_pos.constant import ORDER_STATUS_CANCELLED, PAYMENT_METHOD_CASH, PAYMENT_METHODS
from counter_pos.errors import CounterError, ValidationError
from counter_pos.lifecycle import PayableOrdersPool
from counter_pos.models import PaymentAttempt, PaymentResult, SubmittedOrder
from counter_pos.money import format_amount, parse_amount

logger = logging.getLogger(__name__)


class PaymentState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    AMOUNT_ENTERED = "amount_entered"
    SUBMITTING = "submitting"
    SETTLED = "settled"
    PAYMENT_FAILED = "payment_failed"


class PaymentReconciler:
    """Holds the selected pending order and the operator's payment input.

    Whether a payment fully settles an order is the backend's decision; any
    accepted payment ends the workflow here and the order's server status
    decides whether it shows up in the pool again.
    """

    def __init__(
        self,
        api: ApiClient,
        pool: PayableOrdersPool,
        on_change: Callable[[PaymentState], None] | None = None,
    ) -> None:
        self.api = api
        self.pool = pool
        self.on_change = on_change
        self.state = PaymentState.IDLE
        self.selected: SubmittedOrder | None = None
        self.method = PAYMENT_METHOD_CASH
        self.amount = ""
        self.reference = ""
        self.cancelling = False
        self.last_result: PaymentResult | None = None
        self.last_error: CounterError | None = None

    def _transition(self, state: PaymentState) -> None:
        logger.debug("payment_state from=%s to=%s", self.state.value, state.value)
        self.state = state
        if self.on_change is not None:
            self.on_change(state)

    @property
    def is_submitting(self) -> bool:
        return self.state is PaymentState.SUBMITTING

    @property
    def reference_required(self) -> bool:
        return self.method != PAYMENT_METHOD_CASH

    def _ensure_editable(self) -> None:
        if self.is_submitting or self.cancelling:
            raise ValidationError("Wait for the current request to finish")

    def select(self, order: SubmittedOrder) -> None:
        """Pick an order and pre-fill the amount with its server-reported total."""
        self._ensure_editable()
        self.selected = order
        self.method = PAYMENT_METHOD_CASH
        self.amount = format_amount(order.computed_total)
        self.reference = ""
        self.last_error = None
        self._transition(PaymentState.SELECTED)

    def clear_selection(self) -> None:
        self._ensure_editable()
        self.selected = None
        self.method = PAYMENT_METHOD_CASH
        self.amount = ""
        self.reference = ""
        self._transition(PaymentState.IDLE)

    def _entered(self) -> None:
        if self.selected is None:
            raise ValidationError("Select an order first")
        self._transition(PaymentState.AMOUNT_ENTERED)

    def set_method(self, method: str) -> None:
        self._ensure_editable()
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method {method!r}")
        self.method = method
        self._entered()

    def cycle_method(self) -> str:
        idx = PAYMENT_METHODS.index(self.method)
        self.set_method(PAYMENT_METHODS[(idx + 1) % len(PAYMENT_METHODS)])
        return self.method

    def set_amount(self, text: str) -> None:
        self._ensure_editable()
        self.amount = text.strip()
        self._entered()

    def set_reference(self, text: str) -> None:
        self._ensure_editable()
        self.reference = text.strip()
        self._entered()

    def blocker(self) -> str | None:
        if self.selected is None:
            return "Select an order to pay"
        if self.is_submitting:
            return "Payment is already being processed"
        if self.cancelling:
            return "Order is being cancelled"
        try:
            parse_amount(self.amount)
        except ValidationError as exc:
            return exc.message
        if self.reference_required and not self.reference:
            return "Reference number is required for card and other payments"
        return None

    @property
    def can_submit(self) -> bool:
        return self.blocker() is None

    def build_attempt(self) -> PaymentAttempt:
        reason = self.blocker()
        if reason is not None:
            raise ValidationError(reason)
        assert self.selected is not None
        return PaymentAttempt(
            order_id=self.selected.order_id,
            method=self.method,
            amount=parse_amount(self.amount),
            reference_number=self.reference if self.reference_required else None,
        )

    async def submit(self) -> PaymentResult:
        """Send the payment for the selected order.

        On failure the selection, method, amount and reference stay as typed.
        On success they are reset and the pool is invalidated and re-fetched.
        Printing the receipt is left to the caller.
        """
        attempt = self.build_attempt()
        logger.info(
            "payment_enter order_id=%s method=%s amount=%s", attempt.order_id, attempt.method, attempt.amount
        )
        self._transition(PaymentState.SUBMITTING)
        try:
            result = await self.api.submit_payment(
                attempt.order_id, attempt.method, attempt.amount, attempt.reference_number
            )
        except CounterError as exc:
            self.last_error = exc
            logger.warning("payment_failed order_id=%s error=%r", attempt.order_id, exc)
            self._transition(PaymentState.PAYMENT_FAILED)
            raise

        self.last_result = result
        self.last_error = None
        self.selected = None
        self.method = PAYMENT_METHOD_CASH
        self.amount = ""
        self.reference = ""
        self.pool.invalidate()
        self._transition(PaymentState.SETTLED)
        logger.info("payment_settled order_id=%s status=%s amount=%s", attempt.order_id, result.status, result.settled_amount)

        try:
            await self.pool.fetch(force=True)
        except CounterError as exc:
            logger.warning("pool_refresh_failed after=payment error=%r", exc)
        return result

    async def cancel_selected(self) -> SubmittedOrder:
        """Cancel the selected order on the backend; the selection is kept on failure."""
        if self.selected is None:
            raise ValidationError("Select an order to cancel")
        self._ensure_editable()
        order = self.selected
        self.cancelling = True
        try:
            await self.api.update_order_status(order.order_id, ORDER_STATUS_CANCELLED)
        except CounterError as exc:
            self.last_error = exc
            logger.warning("cancel_failed order_id=%s error=%r", order.order_id, exc)
            raise
        finally:
            self.cancelling = False

        logger.info("order_cancelled order_id=%s", order.order_id)
        self.clear_selection()
        self.pool.invalidate()
        try:
            await self.pool.fetch(force=True)
        except CounterError as exc:
            logger.warning("pool_refresh_failed after=cancel error=%r", exc)
        return order
