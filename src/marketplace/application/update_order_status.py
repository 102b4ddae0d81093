"""Application service: Update Order Status use case.

Used by merchants and administrators to move an order along
pending -> processing -> shipped -> delivered, or to cancel it.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import OrderDTO
from marketplace.domain.exceptions import OrderNotFoundError, ValidationError
from marketplace.domain.model.order import OrderStatus
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class UpdateOrderStatusHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        order_id: int,
        new_status: str,
        tracking_number: str | None = None,
        merchant_id: int | None = None,
    ) -> OrderDTO:
        """Change an order's status.

        Args:
            order_id: The order to update.
            new_status: Target status name, e.g. ``"shipped"``.
            tracking_number: Carrier tracking number; only valid when shipping.
            merchant_id: If given, the order must belong to this merchant.
        """
        target = self._parse_status(new_status)

        with self._uow_factory() as uow:
            machine = OrderStateMachine(uow.orders, StockLedger(uow.products, uow.merchants))
            order = machine.lock(order_id)
            if merchant_id is not None and order.merchant_id != merchant_id:
                raise OrderNotFoundError(f"Order #{order_id} not found")

            previous = order.status
            machine.transition(order, target, tracking_number=tracking_number)
            uow.commit()

        logger.info(
            "order.status_changed",
            order_id=order.id,
            previous=previous.value,
            status=order.status.value,
            tracking_number=order.tracking_number,
        )
        return OrderDTO.from_domain(order)

    @staticmethod
    def _parse_status(raw: str) -> OrderStatus:
        try:
            return OrderStatus(raw)
        except ValueError:
            raise ValidationError(f"Unknown order status '{raw}'") from None
