"""Product aggregate.

Products are owned by the catalog, which lives outside this package.
Checkout only reads them and, through the StockLedger, adjusts their
``stock`` and ``total_sales`` counters.
"""

from __future__ import annotations

from dataclasses import dataclass

from marketplace.domain.exceptions import InsufficientStockError, ValidationError
from marketplace.domain.model.value_objects import Money


@dataclass
class Product:
    """A sellable product belonging to exactly one merchant.

    Invariants:
    - ``stock`` is never negative
    - ``total_sales`` is never negative
    """

    id: int
    merchant_id: int
    name: str
    sku: str
    price: Money
    stock: int
    sale_price: Money | None = None
    total_sales: int = 0
    is_active: bool = True

    @property
    def effective_price(self) -> Money:
        """The price a customer pays today: the sale price when one is set."""
        return self.sale_price if self.sale_price is not None else self.price

    def decrement_stock(self, quantity: int) -> None:
        """Take *quantity* units out of stock and count them as sold."""
        if quantity <= 0:
            raise ValidationError("Stock decrement must be positive")
        if quantity > self.stock:
            raise InsufficientStockError(
                product_id=self.id,
                requested=quantity,
                available=self.stock,
                product_name=self.name,
            )
        self.stock -= quantity
        self.total_sales += quantity

    def restore_stock(self, quantity: int) -> None:
        """Put *quantity* units back, e.g. when an order is cancelled."""
        if quantity <= 0:
            raise ValidationError("Stock restore must be positive")
        self.stock += quantity
        self.total_sales = max(0, self.total_sales - quantity)
