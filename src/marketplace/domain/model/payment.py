"""Payment outcome types shared by the webhook and reconciliation paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PaymentOutcome(Enum):
    """What a provider status code means for us, independent of the provider."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class PaymentCallback:
    """A parsed webhook delivery.

    ``order_reference`` is the zero-padded reference we sent at initiation;
    ``raw`` keeps the provider's payload for logging.
    """

    order_reference: str | None
    transaction_id: str | None
    status_code: str | None
    outcome: PaymentOutcome
    raw: dict = field(default_factory=dict)
