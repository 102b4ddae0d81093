"""Application service: Place Order (the checkout coordinator).

Turns one checkout request into one Order per merchant.  Validation,
splitting, stock reservation and order creation for *all* merchants run
inside a single unit of work, so a failure anywhere (an inactive product,
a short stock on the third merchant's second line) leaves no orders and
no stock changes behind.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

import structlog

from marketplace.application.dto import CheckoutRequest, OrderDTO
from marketplace.domain.exceptions import InvalidCartError, ValidationError
from marketplace.domain.model.cart import CartLine
from marketplace.domain.model.order import Order, PaymentMethod
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money, Quantity, ShippingAddress
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.cart_splitter import CartSplitter
from marketplace.domain.service.order_factory import OrderFactory
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)

DEFAULT_TOTAL_TOLERANCE = Decimal("0.01")


class CheckoutState(Enum):
    VALIDATING = "validating"
    RESERVING = "reserving"
    COMMITTING = "committing"
    DONE = "done"
    ABORTED = "aborted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlaceOrderHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        total_tolerance: Decimal = DEFAULT_TOTAL_TOLERANCE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._total_tolerance = total_tolerance
        self._clock = clock

    def handle(self, request: CheckoutRequest) -> list[OrderDTO]:
        """Place the order.

        Steps:
        1. Parse the request into value objects (no I/O).
        2. Validate products and merchants, cross-check the client total.
        3. Split the cart per merchant and apportion shipping and tax.
        4. Reserve stock and create each merchant's order.
        5. Commit once, for everything.
        """
        lines = self._parse_lines(request)
        address = ShippingAddress.from_dict(request.shipping_address)
        payment_method = self._parse_payment_method(request.payment_method)
        shipping_total = Money.of(request.shipping_fee)
        tax_total = Money.of(request.tax)
        created_at = self._clock()

        log = logger.bind(customer_id=request.customer.id, lines=len(lines))
        state = CheckoutState.VALIDATING
        try:
            with self._uow_factory() as uow:
                splitter = CartSplitter(uow.products, uow.merchants)
                products = splitter.validate(lines)
                self._cross_check_total(request, lines, products, shipping_total, tax_total)
                groups = splitter.split(lines, shipping_total, tax_total, products)

                state = CheckoutState.RESERVING
                ledger = StockLedger(uow.products, uow.merchants)
                factory = OrderFactory(uow.orders, uow.merchants, ledger)
                orders: list[Order] = [
                    factory.build(
                        group,
                        customer=request.customer,
                        shipping_address=address,
                        payment_method=payment_method,
                        notes=request.notes,
                        created_at=created_at,
                    )
                    for group in groups
                ]

                state = CheckoutState.COMMITTING
                uow.commit()
        except Exception as exc:
            log.warning(
                "checkout.aborted",
                state=state.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        log.info(
            "checkout.completed",
            state=CheckoutState.DONE.value,
            order_ids=[o.id for o in orders],
            merchant_ids=[o.merchant_id for o in orders],
        )
        return [OrderDTO.from_domain(order) for order in orders]

    # --- Parsing --------------------------------------------------------------

    @staticmethod
    def _parse_lines(request: CheckoutRequest) -> list[CartLine]:
        if not request.items:
            raise InvalidCartError("Cart must contain at least one item")
        return [
            CartLine(
                product_id=spec.product_id,
                quantity=Quantity(spec.quantity),
                unit_price=Money.of(spec.price),
            )
            for spec in request.items
        ]

    @staticmethod
    def _parse_payment_method(raw: str) -> PaymentMethod:
        try:
            return PaymentMethod(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMethod)
            raise ValidationError(
                f"Unsupported payment method '{raw}' (expected one of: {allowed})"
            ) from None

    # --- Cross-checks ---------------------------------------------------------

    def _cross_check_total(
        self,
        request: CheckoutRequest,
        lines: list[CartLine],
        products: dict[int, Product],
        shipping_total: Money,
        tax_total: Money,
    ) -> None:
        """Reject the checkout if the client's total disagrees with ours.

        Orders are always priced from the catalog; the client figures are
        hints, and a large divergence means the cart the customer saw is
        stale.
        """
        expected = shipping_total + tax_total
        for line in lines:
            expected = expected + products[line.product_id].effective_price * line.quantity.value

        claimed = Money.of(request.total)
        if abs(expected.amount - claimed.amount) > self._total_tolerance:
            raise InvalidCartError(
                f"Cart total {claimed} does not match current prices ({expected})"
            )

        for line in lines:
            product = products[line.product_id]
            if line.unit_price != product.effective_price:
                logger.info(
                    "checkout.price_changed",
                    product_id=product.id,
                    client_price=str(line.unit_price),
                    catalog_price=str(product.effective_price),
                )
