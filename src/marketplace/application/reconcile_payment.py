"""Application service: Reconcile Payment use case.

Polls the provider for orders whose webhook is late or lost and applies
the answer through the same idempotent path as the webhook.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import PaymentStatusDTO
from marketplace.domain.exceptions import OrderNotFoundError
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.model.order import format_payment_reference
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class ReconcilePaymentHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: PaymentGateway) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway

    def handle(self, order_id: int) -> PaymentStatusDTO:
        with self._uow_factory() as uow:
            if uow.orders.get_by_id(order_id) is None:
                raise OrderNotFoundError(f"Order #{order_id} not found")

        # Raises PaymentGatewayError; nothing has been changed yet.
        status = self._gateway.check_status(format_payment_reference(order_id))

        with self._uow_factory() as uow:
            machine = OrderStateMachine(uow.orders, StockLedger(uow.products, uow.merchants))
            order = machine.lock(order_id)
            applied = machine.apply_payment_outcome(order, status.outcome, status.transaction_id)
            uow.commit()

        logger.info(
            "payment.reconciled",
            order_id=order_id,
            outcome=status.outcome.value,
            applied=applied,
            payment_status=order.payment_status.value,
        )
        return PaymentStatusDTO(
            order_id=order_id,
            payment_status=order.payment_status.value,
            order_status=order.status.value,
            gateway_status=status.raw or None,
        )
