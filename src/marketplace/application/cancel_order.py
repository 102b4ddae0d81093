"""Application service: Cancel Order use case.

Cancelling gives every unit of the order back to stock and takes the
order off the merchant's counter, all in one transaction.  Only pending
and processing orders can be cancelled; a second cancel is rejected.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import OrderDTO
from marketplace.domain.exceptions import OrderNotFoundError
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, customer: CustomerContext | None = None) -> OrderDTO:
        """Cancel an order, optionally on behalf of the customer who owns it."""
        with self._uow_factory() as uow:
            machine = OrderStateMachine(uow.orders, StockLedger(uow.products, uow.merchants))
            order = machine.lock(order_id)
            if customer is not None and order.customer_id != customer.id:
                raise OrderNotFoundError(f"Order #{order_id} not found")

            machine.cancel(order)
            uow.commit()

        logger.info(
            "order.cancelled",
            order_id=order.id,
            merchant_id=order.merchant_id,
            restocked={item.product_id: item.quantity.value for item in order.items},
        )
        return OrderDTO.from_domain(order)
