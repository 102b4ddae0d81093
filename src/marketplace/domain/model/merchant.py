"""Merchant aggregate (read-mostly from the checkout's point of view)."""

from __future__ import annotations

from dataclasses import dataclass

from marketplace.domain.model.value_objects import Money


@dataclass
class Merchant:
    """An independent seller on the marketplace.

    ``commission_per_unit`` is a fixed amount owed to the platform for every
    unit sold, regardless of price.  ``total_sales`` counts *orders*, not
    units; it is a coarse rollup kept by the StockLedger.
    """

    id: int
    business_name: str
    commission_per_unit: Money
    is_approved: bool = False
    total_sales: int = 0

    def record_order(self) -> None:
        self.total_sales += 1

    def revoke_order(self) -> None:
        self.total_sales = max(0, self.total_sales - 1)
