"""Domain service: split a multi-merchant cart into merchant groups.

Shared checkout costs (shipping, tax) are apportioned by the number of
cart *lines* each merchant owns, not by quantity or value.
"""

from __future__ import annotations

from marketplace.domain.exceptions import InvalidCartError
from marketplace.domain.model.cart import CartLine, MerchantGroup
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.merchant_repository import MerchantRepository
from marketplace.domain.repository.product_repository import ProductRepository


def apportion(total: Money, weights: list[int]) -> list[Money]:
    """Split *total* proportionally to *weights*, rounded to cents.

    Shares are cut at rounded cumulative boundaries, so each one is
    non-negative and the last absorbs the rounding remainder; together
    they always add up to *total* exactly.
    """
    if not weights or any(w <= 0 for w in weights):
        raise ValueError("Weights must be a non-empty list of positive integers")

    whole = sum(weights)
    shares: list[Money] = []
    running = 0
    boundary = Money.zero()
    for weight in weights[:-1]:
        running += weight
        next_boundary = Money(total.amount * running / whole).rounded()
        shares.append(next_boundary - boundary)
        boundary = next_boundary
    shares.append(total - boundary)
    return shares


class CartSplitter:

    def __init__(
        self,
        product_repo: ProductRepository,
        merchant_repo: MerchantRepository,
    ) -> None:
        self._product_repo = product_repo
        self._merchant_repo = merchant_repo

    def validate(self, lines: list[CartLine]) -> dict[int, Product]:
        """Resolve every product on the cart, or raise InvalidCartError.

        A product is acceptable if it exists, is active and belongs to an
        approved merchant.
        """
        if not lines:
            raise InvalidCartError("Cart must contain at least one item")

        product_ids = sorted({line.product_id for line in lines})
        products = self._product_repo.get_many(product_ids)

        approved: dict[int, bool] = {}
        for product_id in product_ids:
            product = products.get(product_id)
            if product is None or not product.is_active:
                raise InvalidCartError(
                    f"Product #{product_id} is invalid or not available"
                )
            if product.merchant_id not in approved:
                merchant = self._merchant_repo.get_by_id(product.merchant_id)
                approved[product.merchant_id] = merchant is not None and merchant.is_approved
            if not approved[product.merchant_id]:
                raise InvalidCartError(
                    f"Product {product.name} is from an unapproved merchant"
                )
        return products

    def split(
        self,
        lines: list[CartLine],
        shipping_total: Money,
        tax_total: Money,
        products: dict[int, Product] | None = None,
    ) -> list[MerchantGroup]:
        """Group *lines* by merchant, in order of first appearance."""
        if products is None:
            products = self.validate(lines)

        by_merchant: dict[int, list[CartLine]] = {}
        for line in lines:
            merchant_id = products[line.product_id].merchant_id
            by_merchant.setdefault(merchant_id, []).append(line)

        weights = [len(group) for group in by_merchant.values()]
        shipping_shares = apportion(shipping_total, weights)
        tax_shares = apportion(tax_total, weights)

        return [
            MerchantGroup(
                merchant_id=merchant_id,
                lines=group,
                allocated_shipping=shipping,
                allocated_tax=tax,
            )
            for (merchant_id, group), shipping, tax in zip(
                by_merchant.items(), shipping_shares, tax_shares
            )
        ]
