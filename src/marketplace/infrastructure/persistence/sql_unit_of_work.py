"""SQLAlchemy-backed Unit of Work: one connection, one transaction."""

from __future__ import annotations

from sqlalchemy.engine import Connection, Engine, RootTransaction

from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.infrastructure.persistence.sql_merchant_repository import (
    SqlMerchantRepository,
)
from marketplace.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)
from marketplace.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)


class SqlUnitOfWork(UnitOfWork):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._connection: Connection | None = None
        self._transaction: RootTransaction | None = None

    def _begin(self) -> None:
        self._connection = self._engine.connect()
        try:
            self._transaction = self._connection.begin()
        except Exception:
            self._end()
            raise
        self.products = SqlProductRepository(self._connection)
        self.merchants = SqlMerchantRepository(self._connection)
        self.orders = SqlOrderRepository(self._connection)

    def _end(self) -> None:
        if self._connection is not None:
            self._connection.close()
        self._connection = None
        self._transaction = None

    def commit(self) -> None:
        if self._transaction is None:
            raise RuntimeError("Unit of work is not active")
        self._transaction.commit()

    def rollback(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            self._transaction.rollback()
