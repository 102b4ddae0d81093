"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure
layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_for_update(self, product_id: int) -> Product | None:
        """Return a product and hold a write lock on it until the transaction ends."""

    @abstractmethod
    def get_many(self, product_ids: list[int]) -> dict[int, Product]:
        """Return the products that exist among *product_ids*, keyed by ID."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""
