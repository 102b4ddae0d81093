"""Application service: Check Payment Status use case (query).

Read-only: reports our view of the order next to the provider's, without
applying the provider's answer.  Use ReconcilePaymentHandler to apply it.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import PaymentStatusDTO
from marketplace.domain.exceptions import OrderNotFoundError, PaymentGatewayError
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


class CheckPaymentStatusHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: PaymentGateway) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway

    def handle(self, order_id: int, customer: CustomerContext | None = None) -> PaymentStatusDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        if order is None or (customer is not None and order.customer_id != customer.id):
            raise OrderNotFoundError(f"Order #{order_id} not found")

        gateway_status: dict | None
        try:
            gateway_status = self._gateway.check_status(order.payment_reference).raw
        except PaymentGatewayError as exc:
            logger.warning("payment.status_check_failed", order_id=order_id, error=str(exc))
            gateway_status = None

        return PaymentStatusDTO(
            order_id=order_id,
            payment_status=order.payment_status.value,
            order_status=order.status.value,
            gateway_status=gateway_status,
        )
