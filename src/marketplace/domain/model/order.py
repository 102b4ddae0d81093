"""Order aggregate: one merchant's share of a customer's checkout.

The Order is an aggregate root that owns its items.  Status and payment
status legality lives here; cross-aggregate side effects of a transition
(stock restoration, merchant counters) are coordinated by the
OrderStateMachine domain service.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from marketplace.domain.exceptions import IllegalTransitionError, ValidationError
from marketplace.domain.model.value_objects import Money, Quantity, ShippingAddress


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class PaymentMethod(Enum):
    CARD = "card"
    COD = "cod"


# Legal order-status moves.  CANCELLED and DELIVERED have no way out.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(now: datetime | None = None) -> str:
    """``ORD-20250101-1A2B3C4D5E6F7``: date plus 13 random hex digits."""
    now = now or _utcnow()
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:13].upper()}"


@dataclass
class OrderItem:
    """A line of an order with product details frozen at checkout time.

    ``product_name`` and ``product_sku`` are snapshots, so later catalog
    edits never rewrite history.  Build new items with ``OrderItem.create``.
    """

    product_id: int
    product_name: str
    product_sku: str
    unit_price: Money
    quantity: Quantity
    subtotal: Money
    order_id: int | None = None
    id: int | None = None

    @staticmethod
    def create(
        product_id: int,
        product_name: str,
        product_sku: str,
        unit_price: Money,
        quantity: Quantity,
    ) -> OrderItem:
        return OrderItem(
            product_id=product_id,
            product_name=product_name,
            product_sku=product_sku,
            unit_price=unit_price,
            quantity=quantity,
            subtotal=unit_price * quantity.value,
        )


@dataclass
class Order:
    """Aggregate root for a single merchant's order.

    Use ``Order.create()`` for new orders; it checks the money invariants.
    The ``__init__`` is intentionally simple so the repository can
    reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    customer_id: int
    merchant_id: int
    items: list[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    subtotal: Money
    tax: Money
    shipping: Money
    discount: Money
    total: Money
    commission_per_unit: Money
    commission_amount: Money
    merchant_payout: Money
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_transaction_id: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    shipping_method: str = "standard"
    created_at: datetime = field(default_factory=_utcnow)
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    paid_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: int,
        merchant_id: int,
        items: list[OrderItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        subtotal: Money,
        tax: Money,
        shipping: Money,
        discount: Money,
        total: Money,
        commission_per_unit: Money,
        commission_amount: Money,
        merchant_payout: Money,
        notes: str | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """Create a new pending order, enforcing the money invariants."""
        if not items:
            raise ValidationError("Order must contain at least one item")

        item_sum = Money.zero()
        for item in items:
            if item.subtotal != item.unit_price * item.quantity.value:
                raise ValidationError(
                    f"Item subtotal for {item.product_name} does not match price x quantity"
                )
            item_sum = item_sum + item.subtotal
        if item_sum != subtotal:
            raise ValidationError(f"Order subtotal {subtotal} does not match items ({item_sum})")

        if subtotal.amount + tax.amount + shipping.amount - discount.amount != total.amount:
            raise ValidationError("Order total must equal subtotal + tax + shipping - discount")
        if total.amount - commission_amount.amount != merchant_payout.amount:
            raise ValidationError("Merchant payout must equal total - commission")

        created_at = created_at or _utcnow()
        return Order(
            id=None,
            order_number=generate_order_number(created_at),
            customer_id=customer_id,
            merchant_id=merchant_id,
            items=list(items),
            shipping_address=shipping_address,
            payment_method=payment_method,
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            discount=discount,
            total=total,
            commission_per_unit=commission_per_unit,
            commission_amount=commission_amount,
            merchant_payout=merchant_payout,
            notes=notes,
            created_at=created_at,
        )

    # --- Order-status transitions ---------------------------------------------

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ORDER_TRANSITIONS[self.status]

    @property
    def can_be_cancelled(self) -> bool:
        return self.can_transition_to(OrderStatus.CANCELLED)

    def change_status(
        self,
        new_status: OrderStatus,
        tracking_number: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Move to *new_status*, stamping ship/deliver times.

        Raises IllegalTransitionError without touching the order if the
        move is not allowed from the current status.
        """
        if not self.can_transition_to(new_status):
            raise IllegalTransitionError(
                f"order {self.order_number}", self.status.value, new_status.value
            )
        if tracking_number is not None and new_status is not OrderStatus.SHIPPED:
            raise ValidationError("A tracking number can only be set when shipping")

        now = now or _utcnow()
        self.status = new_status

        if new_status is OrderStatus.SHIPPED:
            if self.shipped_at is None:
                self.shipped_at = now
            if tracking_number:
                self.tracking_number = tracking_number
        elif new_status is OrderStatus.DELIVERED:
            if self.delivered_at is None:
                self.delivered_at = now
            if self.shipped_at is None:
                self.shipped_at = now

    # --- Payment-status transitions -------------------------------------------

    def mark_paid(self, transaction_id: str | None, now: datetime | None = None) -> None:
        self._require_payment_pending(PaymentStatus.PAID)
        self.payment_status = PaymentStatus.PAID
        self.paid_at = now or _utcnow()
        if transaction_id:
            self.payment_transaction_id = transaction_id

    def mark_payment_failed(self, transaction_id: str | None) -> None:
        self._require_payment_pending(PaymentStatus.FAILED)
        self.payment_status = PaymentStatus.FAILED
        if transaction_id:
            self.payment_transaction_id = transaction_id

    def record_payment_attempt(self, transaction_id: str | None) -> None:
        """Remember the gateway's transaction id while payment is still pending."""
        self._require_payment_pending(PaymentStatus.PENDING)
        if transaction_id:
            self.payment_transaction_id = transaction_id

    # --- Computed properties --------------------------------------------------

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity.value for item in self.items)

    @property
    def payment_reference(self) -> str:
        """The human-readable reference the gateway echoes back to us."""
        if self.id is None:
            raise ValidationError("Order has not been persisted yet")
        return format_payment_reference(self.id)

    # --- Internal helpers -----------------------------------------------------

    def _require_payment_pending(self, requested: PaymentStatus) -> None:
        if self.payment_status.is_terminal:
            raise IllegalTransitionError(
                f"payment of order {self.order_number}",
                self.payment_status.value,
                requested.value,
            )


def format_payment_reference(order_id: int) -> str:
    """Order id left-padded with zeros to twelve digits."""
    return str(order_id).zfill(12)


def parse_payment_reference(reference: str) -> int | None:
    """Inverse of ``format_payment_reference``; None if not a reference."""
    digits = reference.strip().lstrip("0")
    if not digits.isdigit():
        return None
    return int(digits)
