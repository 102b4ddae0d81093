"""Application service: Initiate Payment use case.

The provider call happens *between* two short transactions, never inside
one: the first reads the order, the second records the provider's
transaction id.  A gateway failure or timeout leaves the order exactly as
it was (pending/pending), so the customer can simply retry.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import PaymentInitiationDTO
from marketplace.domain.exceptions import (
    IllegalTransitionError,
    OrderNotFoundError,
    PaymentGatewayError,
)
from marketplace.domain.gateway import PaymentGateway, PaymentRequest
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.model.order import Order, OrderStatus, PaymentStatus
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class InitiatePaymentHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: PaymentGateway) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway

    def handle(self, order_id: int, customer: CustomerContext | None = None) -> PaymentInitiationDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        if order is None or (customer is not None and order.customer_id != customer.id):
            raise OrderNotFoundError(f"Order #{order_id} not found")
        self._ensure_payable(order)

        try:
            initiation = self._gateway.initiate(self._build_request(order))
        except PaymentGatewayError as exc:
            logger.error("payment.initiation_failed", order_id=order_id, error=str(exc))
            return PaymentInitiationDTO(success=False, order_id=order_id, error=str(exc))

        with self._uow_factory() as uow:
            machine = OrderStateMachine(uow.orders, StockLedger(uow.products, uow.merchants))
            locked = machine.lock(order_id)
            machine.record_payment_attempt(locked, initiation.transaction_id)
            uow.commit()

        logger.info(
            "payment.initiated",
            order_id=order_id,
            transaction_id=initiation.transaction_id,
            amount=str(order.total),
        )
        return PaymentInitiationDTO(
            success=True,
            order_id=order_id,
            payment_url=initiation.payment_url,
            transaction_id=initiation.transaction_id,
            method=initiation.method,
            form_data=dict(initiation.form_data),
        )

    @staticmethod
    def _ensure_payable(order: Order) -> None:
        if order.payment_status is PaymentStatus.PAID:
            raise IllegalTransitionError(
                f"payment of order {order.order_number}",
                order.payment_status.value,
                PaymentStatus.PENDING.value,
                reason="order already paid",
            )
        if order.status is OrderStatus.CANCELLED or order.payment_status is PaymentStatus.FAILED:
            raise IllegalTransitionError(
                f"payment of order {order.order_number}",
                order.payment_status.value,
                PaymentStatus.PENDING.value,
                reason="order is no longer payable",
            )

    @staticmethod
    def _build_request(order: Order) -> PaymentRequest:
        address = order.shipping_address
        return PaymentRequest(
            reference=order.payment_reference,
            amount=order.total.amount,
            customer_email=address.email,
            customer_name=address.name,
            customer_phone=address.phone,
            description=f"Order {order.order_number}",
        )
