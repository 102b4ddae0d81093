"""Abstract repository for Merchant aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.merchant import Merchant


class MerchantRepository(ABC):

    @abstractmethod
    def get_by_id(self, merchant_id: int) -> Merchant | None:
        """Return a merchant by its ID, or None if not found."""

    @abstractmethod
    def get_for_update(self, merchant_id: int) -> Merchant | None:
        """Return a merchant and hold a write lock on it until the transaction ends."""

    @abstractmethod
    def save(self, merchant: Merchant) -> None:
        """Persist a new or updated merchant."""
