"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_for_update(self, order_id: int) -> Order | None:
        """Return an order and hold a write lock on it until the transaction ends."""

    @abstractmethod
    def list_for_customer(self, customer_id: int) -> list[Order]:
        """Return a customer's orders, newest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order, assigning IDs to new rows."""
