"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the HTTP/CLI adapters and the application layer
without exposing domain internals to the outside world.  Money travels
as two-decimal strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.model.order import Order


@dataclass(frozen=True)
class CartItemSpec:
    """Input: one cart line as the client sent it."""

    product_id: int
    quantity: int
    price: str


@dataclass(frozen=True)
class CheckoutRequest:
    """Input: a whole checkout.

    ``subtotal``, ``shipping_fee``, ``tax`` and ``total`` are the client's
    figures; shipping and tax are apportioned across merchants, the others
    are only cross-checked.
    """

    customer: CustomerContext
    items: list[CartItemSpec]
    shipping_address: dict
    payment_method: str
    subtotal: str
    shipping_fee: str
    tax: str
    total: str
    notes: str | None = None


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: int
    product_name: str
    product_sku: str
    unit_price: str
    quantity: int
    subtotal: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as shown to customers and merchants."""

    id: int
    order_number: str
    customer_id: int
    merchant_id: int
    status: str
    payment_status: str
    payment_method: str
    subtotal: str
    tax: str
    shipping: str
    discount: str
    total: str
    commission_per_unit: str
    commission_amount: str
    merchant_payout: str
    shipping_address: dict
    items: list[OrderItemDTO]
    created_at: str
    payment_transaction_id: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    shipped_at: str | None = None
    delivered_at: str | None = None
    paid_at: str | None = None

    @staticmethod
    def from_domain(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            customer_id=order.customer_id,
            merchant_id=order.merchant_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value,
            subtotal=str(order.subtotal),
            tax=str(order.tax),
            shipping=str(order.shipping),
            discount=str(order.discount),
            total=str(order.total),
            commission_per_unit=str(order.commission_per_unit),
            commission_amount=str(order.commission_amount),
            merchant_payout=str(order.merchant_payout),
            shipping_address=order.shipping_address.to_dict(),
            items=[
                OrderItemDTO(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    unit_price=str(item.unit_price),
                    quantity=item.quantity.value,
                    subtotal=str(item.subtotal),
                )
                for item in order.items
            ],
            created_at=order.created_at.isoformat(),
            payment_transaction_id=order.payment_transaction_id,
            tracking_number=order.tracking_number,
            notes=order.notes,
            shipped_at=order.shipped_at.isoformat() if order.shipped_at else None,
            delivered_at=order.delivered_at.isoformat() if order.delivered_at else None,
            paid_at=order.paid_at.isoformat() if order.paid_at else None,
        )


@dataclass(frozen=True)
class PaymentInitiationDTO:
    success: bool
    order_id: int
    payment_url: str | None = None
    transaction_id: str | None = None
    method: str | None = None
    form_data: dict[str, str] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class PaymentStatusDTO:
    order_id: int
    payment_status: str
    order_status: str
    gateway_status: dict | None = None


@dataclass(frozen=True)
class CallbackResultDTO:
    """Acknowledgement returned to the provider for one webhook delivery."""

    success: bool
    message: str
    order_id: int | None = None
    applied: bool = False


@dataclass(frozen=True)
class PaymentReturnDTO:
    order_id: int
    payment_status: str
    order_status: str
    inferred_status: str
    message: str
