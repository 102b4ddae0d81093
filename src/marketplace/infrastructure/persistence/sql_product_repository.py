"""SQL implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Row

from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.infrastructure.persistence.tables import products


class SqlProductRepository(ProductRepository):

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: int) -> Product | None:
        row = self._connection.execute(
            select(products).where(products.c.id == product_id)
        ).first()
        return self._to_domain(row) if row is not None else None

    def get_for_update(self, product_id: int) -> Product | None:
        row = self._connection.execute(
            select(products).where(products.c.id == product_id).with_for_update()
        ).first()
        return self._to_domain(row) if row is not None else None

    def get_many(self, product_ids: list[int]) -> dict[int, Product]:
        if not product_ids:
            return {}
        rows = self._connection.execute(
            select(products).where(products.c.id.in_(product_ids))
        ).all()
        return {row.id: self._to_domain(row) for row in rows}

    def save(self, product: Product) -> None:
        values = self._to_row(product)
        exists = self._connection.execute(
            select(products.c.id).where(products.c.id == product.id)
        ).first()
        if exists is None:
            self._connection.execute(insert(products).values(id=product.id, **values))
        else:
            self._connection.execute(
                update(products).where(products.c.id == product.id).values(**values)
            )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_row(product: Product) -> dict:
        return {
            "merchant_id": product.merchant_id,
            "name": product.name,
            "sku": product.sku,
            "price": product.price.amount,
            "sale_price": product.sale_price.amount if product.sale_price else None,
            "stock": product.stock,
            "total_sales": product.total_sales,
            "is_active": product.is_active,
        }

    @staticmethod
    def _to_domain(row: Row) -> Product:
        return Product(
            id=row.id,
            merchant_id=row.merchant_id,
            name=row.name,
            sku=row.sku,
            price=Money(Decimal(row.price)),
            sale_price=Money(Decimal(row.sale_price)) if row.sale_price is not None else None,
            stock=row.stock,
            total_sales=row.total_sales,
            is_active=bool(row.is_active),
        )
