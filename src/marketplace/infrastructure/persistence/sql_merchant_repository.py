"""SQL implementation of MerchantRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Row

from marketplace.domain.model.merchant import Merchant
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.merchant_repository import MerchantRepository
from marketplace.infrastructure.persistence.tables import merchants


class SqlMerchantRepository(MerchantRepository):

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def get_by_id(self, merchant_id: int) -> Merchant | None:
        row = self._connection.execute(
            select(merchants).where(merchants.c.id == merchant_id)
        ).first()
        return self._to_domain(row) if row is not None else None

    def get_for_update(self, merchant_id: int) -> Merchant | None:
        row = self._connection.execute(
            select(merchants).where(merchants.c.id == merchant_id).with_for_update()
        ).first()
        return self._to_domain(row) if row is not None else None

    def save(self, merchant: Merchant) -> None:
        values = {
            "business_name": merchant.business_name,
            "commission_per_unit": merchant.commission_per_unit.amount,
            "is_approved": merchant.is_approved,
            "total_sales": merchant.total_sales,
        }
        exists = self._connection.execute(
            select(merchants.c.id).where(merchants.c.id == merchant.id)
        ).first()
        if exists is None:
            self._connection.execute(insert(merchants).values(id=merchant.id, **values))
        else:
            self._connection.execute(
                update(merchants).where(merchants.c.id == merchant.id).values(**values)
            )

    @staticmethod
    def _to_domain(row: Row) -> Merchant:
        return Merchant(
            id=row.id,
            business_name=row.business_name,
            commission_per_unit=Money(Decimal(row.commission_per_unit)),
            is_approved=bool(row.is_approved),
            total_sales=row.total_sales,
        )
