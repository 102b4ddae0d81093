"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements, so the
application layer never sees provider field names or status vocabularies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

from marketplace.domain.model.payment import PaymentCallback, PaymentOutcome


@dataclass(frozen=True)
class PaymentRequest:
    """Everything a provider needs to take payment for one order."""

    reference: str
    amount: Decimal
    customer_email: str
    customer_name: str
    customer_phone: str
    description: str


@dataclass(frozen=True)
class PaymentInitiation:
    """Where to send the customer to pay."""

    payment_url: str
    transaction_id: str
    method: str = "POST"
    form_data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayStatus:
    """A synchronous status answer from the provider."""

    status_code: str | None
    outcome: PaymentOutcome
    transaction_id: str | None = None
    raw: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def initiate(self, request: PaymentRequest) -> PaymentInitiation:
        """Register a payment with the provider.

        Raises PaymentGatewayError on transport errors, timeouts or
        provider rejections.
        """

    @abstractmethod
    def check_status(self, reference: str) -> GatewayStatus:
        """Ask the provider for the current state of a payment."""

    @abstractmethod
    def verify_signature(self, payload: bytes, signature: str | None) -> bool:
        """Verify that a webhook body was signed by the provider."""

    @abstractmethod
    def parse_callback(self, payload: dict) -> PaymentCallback:
        """Extract reference, transaction id and outcome from a webhook body."""

    @abstractmethod
    def infer_return_status(self, query: dict[str, str]) -> PaymentOutcome:
        """Best-effort outcome from the browser's return redirect."""
