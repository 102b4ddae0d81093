"""Domain service: build and persist one merchant's order.

Stock is taken line by line through the StockLedger.  The factory never
compensates on failure: the enclosing unit of work is rolled back by the
caller, which undoes every reservation made for every merchant in the
checkout.
"""

from __future__ import annotations

from datetime import datetime

from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.cart import CustomerContext, MerchantGroup
from marketplace.domain.model.order import Order, OrderItem, PaymentMethod
from marketplace.domain.model.value_objects import Money, ShippingAddress
from marketplace.domain.repository.merchant_repository import MerchantRepository
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.service.commission import calculate_commission
from marketplace.domain.service.stock_ledger import StockLedger


class OrderFactory:

    def __init__(
        self,
        order_repo: OrderRepository,
        merchant_repo: MerchantRepository,
        stock_ledger: StockLedger,
    ) -> None:
        self._order_repo = order_repo
        self._merchant_repo = merchant_repo
        self._stock_ledger = stock_ledger

    def build(
        self,
        group: MerchantGroup,
        customer: CustomerContext,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """Reserve stock for *group*, then persist a pending Order for it.

        Items are priced from the locked product rows (sale price when
        set), never from the client's cart.
        """
        merchant = self._merchant_repo.get_by_id(group.merchant_id)
        if merchant is None:
            raise EntityNotFoundError(f"Merchant #{group.merchant_id} not found")

        items: list[OrderItem] = []
        for line in group.lines:
            product = self._stock_ledger.reserve_and_decrement(
                line.product_id, line.quantity.value
            )
            items.append(
                OrderItem.create(
                    product_id=product.id,
                    product_name=product.name,
                    product_sku=product.sku,
                    unit_price=product.effective_price,
                    quantity=line.quantity,
                )
            )

        subtotal = Money.zero()
        for item in items:
            subtotal = subtotal + item.subtotal
        discount = Money.zero()
        total = subtotal + group.allocated_tax + group.allocated_shipping - discount

        commission = calculate_commission(
            merchant.commission_per_unit,
            group.total_quantity,
            total,
        )

        order = Order.create(
            customer_id=customer.id,
            merchant_id=merchant.id,
            items=items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            subtotal=subtotal,
            tax=group.allocated_tax,
            shipping=group.allocated_shipping,
            discount=discount,
            total=total,
            commission_per_unit=merchant.commission_per_unit,
            commission_amount=commission.amount,
            merchant_payout=commission.payout,
            notes=notes,
            created_at=created_at,
        )
        self._order_repo.save(order)
        self._stock_ledger.record_merchant_order(merchant.id)
        return order
