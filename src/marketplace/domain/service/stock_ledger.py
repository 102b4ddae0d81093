"""Domain service: Stock Ledger.

The only code allowed to change ``Product.stock``, ``Product.total_sales``
and ``Merchant.total_sales``.  Every change re-reads the row through
``get_for_update`` so concurrent checkouts of the same product queue on
the row lock instead of racing a check-then-decrement.

All methods must run inside the caller's unit of work; nothing here
commits.
"""

from __future__ import annotations

from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.merchant import Merchant
from marketplace.domain.model.product import Product
from marketplace.domain.repository.merchant_repository import MerchantRepository
from marketplace.domain.repository.product_repository import ProductRepository


class StockLedger:

    def __init__(
        self,
        product_repo: ProductRepository,
        merchant_repo: MerchantRepository,
    ) -> None:
        self._product_repo = product_repo
        self._merchant_repo = merchant_repo

    def reserve_and_decrement(self, product_id: int, quantity: int) -> Product:
        """Take *quantity* units of a product, or raise InsufficientStockError.

        Returns the locked, updated product so the caller can snapshot
        its name, SKU and price.
        """
        if quantity <= 0:
            raise ValidationError("Reserved quantity must be positive")
        product = self._lock_product(product_id)
        product.decrement_stock(quantity)
        self._product_repo.save(product)
        return product

    def restore(self, product_id: int, quantity: int) -> Product:
        """Give back units taken by ``reserve_and_decrement``."""
        product = self._lock_product(product_id)
        product.restore_stock(quantity)
        self._product_repo.save(product)
        return product

    def record_merchant_order(self, merchant_id: int) -> Merchant:
        merchant = self._lock_merchant(merchant_id)
        merchant.record_order()
        self._merchant_repo.save(merchant)
        return merchant

    def revoke_merchant_order(self, merchant_id: int) -> Merchant:
        merchant = self._lock_merchant(merchant_id)
        merchant.revoke_order()
        self._merchant_repo.save(merchant)
        return merchant

    # --- Internal helpers -----------------------------------------------------

    def _lock_product(self, product_id: int) -> Product:
        product = self._product_repo.get_for_update(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")
        return product

    def _lock_merchant(self, merchant_id: int) -> Merchant:
        merchant = self._merchant_repo.get_for_update(merchant_id)
        if merchant is None:
            raise EntityNotFoundError(f"Merchant #{merchant_id} not found")
        return merchant
