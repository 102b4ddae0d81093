"""Domain service: per-unit commission.

Merchants owe the platform a fixed amount for every unit they sell,
independent of the unit price.
"""

from __future__ import annotations

from dataclasses import dataclass

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Money


@dataclass(frozen=True)
class Commission:
    amount: Money
    payout: Money


def calculate_commission(
    commission_per_unit: Money,
    total_quantity: int,
    order_total: Money,
) -> Commission:
    """Return the platform's commission and the merchant's payout.

    ``total_quantity`` is the sum of line quantities in the merchant's
    order, not the number of distinct products.
    """
    if total_quantity <= 0:
        raise ValidationError("Commission requires a positive quantity")

    amount = commission_per_unit * total_quantity
    if amount > order_total:
        raise ValidationError(
            f"Commission {amount} exceeds order total {order_total}"
        )
    return Commission(amount=amount, payout=order_total - amount)
