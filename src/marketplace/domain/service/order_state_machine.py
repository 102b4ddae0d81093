"""Domain service: Order State Machine.

The Order aggregate knows which status moves are legal; this service adds
the side effects that reach into other aggregates:

- ``-> cancelled`` gives every item's units back to stock and takes one
  order off the merchant's counter.
- a successful payment moves a pending order to ``processing``.
- a failed payment cancels the order (with the restock above), or is
  only recorded when the order was already cancelled.

Each public method validates completely before mutating anything, so an
IllegalTransitionError leaves both the order and the stock untouched.
Callers obtain the order through ``lock()`` to serialize concurrent
updates of the same order.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from marketplace.domain.exceptions import IllegalTransitionError, OrderNotFoundError
from marketplace.domain.model.order import Order, OrderStatus, PaymentStatus
from marketplace.domain.model.payment import PaymentOutcome
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.service.stock_ledger import StockLedger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStateMachine:

    def __init__(
        self,
        order_repo: OrderRepository,
        stock_ledger: StockLedger,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._stock_ledger = stock_ledger
        self._clock = clock

    def lock(self, order_id: int) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order #{order_id} not found")
        return order

    # --- Order status ---------------------------------------------------------

    def transition(
        self,
        order: Order,
        new_status: OrderStatus,
        tracking_number: str | None = None,
    ) -> Order:
        """Move *order* to *new_status* and run the side effects."""
        if new_status is OrderStatus.CANCELLED:
            return self.cancel(order)

        order.change_status(new_status, tracking_number=tracking_number, now=self._clock())
        self._order_repo.save(order)
        return order

    def cancel(self, order: Order) -> Order:
        """Cancel a pending or processing order and restock its items."""
        order.change_status(OrderStatus.CANCELLED, now=self._clock())
        for item in order.items:
            self._stock_ledger.restore(item.product_id, item.quantity.value)
        self._stock_ledger.revoke_merchant_order(order.merchant_id)
        self._order_repo.save(order)
        return order

    # --- Payment status -------------------------------------------------------

    def apply_payment_outcome(
        self,
        order: Order,
        outcome: PaymentOutcome,
        transaction_id: str | None,
    ) -> bool:
        """Apply a provider-reported payment outcome.

        Returns False, changing nothing, when the payment has already
        reached a terminal status: a repeated delivery of the same
        callback must not set ``paid_at`` twice or restock twice.
        """
        if order.payment_status.is_terminal:
            return False

        if outcome is PaymentOutcome.SUCCEEDED:
            self._mark_paid(order, transaction_id)
        elif outcome is PaymentOutcome.FAILED:
            self._mark_failed(order, transaction_id)
        else:
            order.record_payment_attempt(transaction_id)
            self._order_repo.save(order)
        return True

    def record_payment_attempt(self, order: Order, transaction_id: str) -> Order:
        """Remember a freshly initiated payment; the order status is untouched."""
        if order.status is OrderStatus.CANCELLED:
            raise IllegalTransitionError(
                f"payment of order {order.order_number}",
                order.payment_status.value,
                PaymentStatus.PENDING.value,
                reason="order is cancelled",
            )
        order.record_payment_attempt(transaction_id)
        self._order_repo.save(order)
        return order

    # --- Internal helpers -----------------------------------------------------

    def _mark_paid(self, order: Order, transaction_id: str | None) -> None:
        if order.status is OrderStatus.CANCELLED:
            raise IllegalTransitionError(
                f"payment of order {order.order_number}",
                order.payment_status.value,
                PaymentStatus.PAID.value,
                reason="order is cancelled",
            )
        order.mark_paid(transaction_id, now=self._clock())
        if order.status is OrderStatus.PENDING:
            order.change_status(OrderStatus.PROCESSING, now=self._clock())
        self._order_repo.save(order)

    def _mark_failed(self, order: Order, transaction_id: str | None) -> None:
        if order.status is OrderStatus.CANCELLED:
            # Stock already went back when the order was cancelled.
            order.mark_payment_failed(transaction_id)
            self._order_repo.save(order)
            return
        if not order.can_be_cancelled:
            raise IllegalTransitionError(
                f"order {order.order_number}",
                order.status.value,
                OrderStatus.CANCELLED.value,
                reason="payment failed after the order left processing",
            )
        order.mark_payment_failed(transaction_id)
        self.cancel(order)
