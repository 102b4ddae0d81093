"""Application service: Process Payment Callback (the webhook handler).

The provider is the source of truth for payment outcomes.  Deliveries are
verified, parsed by the gateway adapter, and applied through the
OrderStateMachine in one transaction.  Duplicate deliveries are detected
by the payment status already being terminal and acknowledged without
re-applying anything.

Apart from signature failures, every outcome is reported back as a
CallbackResultDTO instead of an exception: the provider only needs to
know we received the delivery.
"""

from __future__ import annotations

import json
from urllib.parse import parse_qsl

import structlog

from marketplace.application.dto import CallbackResultDTO
from marketplace.domain.exceptions import (
    DomainException,
    InvalidCallbackSignatureError,
    OrderNotFoundError,
)
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.model.order import parse_payment_reference
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


def decode_callback_body(body: bytes, content_type: str | None) -> dict:
    """Decode a JSON or form-encoded webhook body into a flat dict.

    Returns an empty dict for an empty or undecodable body.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return {}
    if content_type and "json" not in content_type and "=" in text:
        return dict(parse_qsl(text, keep_blank_values=True))
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        return dict(parse_qsl(text, keep_blank_values=True))
    return decoded if isinstance(decoded, dict) else {}


class ProcessPaymentCallbackHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: PaymentGateway) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway

    def handle(
        self,
        body: bytes,
        content_type: str | None,
        signature: str | None,
    ) -> CallbackResultDTO:
        if not self._gateway.verify_signature(body, signature):
            logger.warning(
                "payment_callback.signature_invalid",
                security_event=True,
                signature_present=bool(signature),
                body_length=len(body),
            )
            raise InvalidCallbackSignatureError("Invalid callback signature")

        payload = decode_callback_body(body, content_type)
        if not payload:
            logger.warning("payment_callback.empty")
            return CallbackResultDTO(success=False, message="Empty callback data")

        callback = self._gateway.parse_callback(payload)
        log = logger.bind(
            reference=callback.order_reference,
            transaction_id=callback.transaction_id,
            status_code=callback.status_code,
            outcome=callback.outcome.value,
        )
        log.info("payment_callback.received")

        order_id = parse_payment_reference(callback.order_reference or "")
        if order_id is None:
            log.warning("payment_callback.missing_reference")
            return CallbackResultDTO(success=False, message="Missing order reference")

        try:
            with self._uow_factory() as uow:
                machine = OrderStateMachine(uow.orders, StockLedger(uow.products, uow.merchants))
                order = machine.lock(order_id)
                applied = machine.apply_payment_outcome(
                    order, callback.outcome, callback.transaction_id
                )
                uow.commit()
        except OrderNotFoundError:
            log.warning("payment_callback.order_not_found", order_id=order_id)
            return CallbackResultDTO(success=False, message="Order not found", order_id=order_id)
        except DomainException as exc:
            log.error("payment_callback.rejected", order_id=order_id, error=str(exc))
            return CallbackResultDTO(success=False, message=str(exc), order_id=order_id)

        if not applied:
            log.info("payment_callback.duplicate", order_id=order_id)
            return CallbackResultDTO(
                success=True, message="Order already processed", order_id=order_id
            )

        log.info(
            "payment_callback.applied",
            order_id=order_id,
            payment_status=order.payment_status.value,
            order_status=order.status.value,
        )
        return CallbackResultDTO(
            success=True,
            message="Callback processed successfully",
            order_id=order_id,
            applied=True,
        )
