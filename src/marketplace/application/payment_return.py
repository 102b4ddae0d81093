"""Application service: Payment Return use case (query).

The customer's browser comes back from the provider with whatever query
parameters the provider felt like sending.  We guess the outcome for the
user's benefit only; state is changed exclusively by the webhook.
"""

from __future__ import annotations

from marketplace.application.dto import PaymentReturnDTO
from marketplace.domain.exceptions import OrderNotFoundError, ValidationError
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.model.order import parse_payment_reference
from marketplace.domain.model.payment import PaymentOutcome
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory

_MESSAGES = {
    PaymentOutcome.SUCCEEDED: "Payment successful! Your order is being processed.",
    PaymentOutcome.FAILED: "Payment failed. Please try again.",
    PaymentOutcome.PENDING: "Payment is being processed. Please wait for confirmation.",
}


class PaymentReturnHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: PaymentGateway) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway

    def handle(self, query: dict[str, str]) -> PaymentReturnDTO:
        raw_reference = query.get("refno") or query.get("order_id")
        if not raw_reference:
            raise ValidationError("Invalid payment return: no order reference")

        order_id = parse_payment_reference(raw_reference)
        if order_id is None:
            raise ValidationError(f"Invalid payment return reference '{raw_reference}'")

        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order #{order_id} not found")

        inferred = self._gateway.infer_return_status(query)
        return PaymentReturnDTO(
            order_id=order_id,
            payment_status=order.payment_status.value,
            order_status=order.status.value,
            inferred_status=inferred.value,
            message=_MESSAGES[inferred],
        )
