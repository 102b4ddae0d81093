"""Abstract Unit of Work: one database transaction.

Usage::

    with uow_factory() as uow:
        product = uow.products.get_for_update(7)
        ...
        uow.commit()

Leaving the block without ``commit()``, or because of an exception,
rolls back every change made through the repositories.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from marketplace.domain.repository.merchant_repository import MerchantRepository
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):
    products: ProductRepository
    merchants: MerchantRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        self._begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # rollback is a no-op after a successful commit
        self.rollback()
        self._end()

    @abstractmethod
    def _begin(self) -> None:
        """Open the transaction and bind repositories to it."""

    @abstractmethod
    def _end(self) -> None:
        """Release the underlying connection."""

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
