"""Transient checkout types, never persisted."""

from __future__ import annotations

from dataclasses import dataclass, field

from marketplace.domain.model.value_objects import Money, Quantity


@dataclass(frozen=True)
class CustomerContext:
    """The authenticated customer placing or inspecting orders."""

    id: int
    email: str | None = None


@dataclass(frozen=True)
class CartLine:
    """One line of the customer's cart.

    ``unit_price`` is what the client displayed at checkout time.  It is a
    hint only; orders are priced from the server's catalog.
    """

    product_id: int
    quantity: Quantity
    unit_price: Money


@dataclass(frozen=True)
class MerchantGroup:
    """The slice of a cart that belongs to one merchant and becomes one Order."""

    merchant_id: int
    lines: list[CartLine] = field(default_factory=list)
    allocated_shipping: Money = field(default_factory=Money.zero)
    allocated_tax: Money = field(default_factory=Money.zero)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity.value for line in self.lines)
