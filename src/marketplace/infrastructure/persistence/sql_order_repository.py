"""SQL implementation of OrderRepository.

Items are written once, with their order; afterwards only the order row
changes (statuses, payment fields, timestamps).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Row

from marketplace.domain.model.order import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from marketplace.domain.model.value_objects import Money, Quantity, ShippingAddress
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.infrastructure.persistence.tables import order_items, orders


class SqlOrderRepository(OrderRepository):

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._connection.execute(
            select(orders).where(orders.c.id == order_id)
        ).first()
        return self._load(row) if row is not None else None

    def get_for_update(self, order_id: int) -> Order | None:
        row = self._connection.execute(
            select(orders).where(orders.c.id == order_id).with_for_update()
        ).first()
        return self._load(row) if row is not None else None

    def list_for_customer(self, customer_id: int) -> list[Order]:
        rows = self._connection.execute(
            select(orders)
            .where(orders.c.customer_id == customer_id)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
        ).all()
        return [self._load(row) for row in rows]

    def save(self, order: Order) -> None:
        values = self._to_row(order)
        if order.id is None:
            result = self._connection.execute(insert(orders).values(**values))
            order.id = result.inserted_primary_key[0]
            for item in order.items:
                item.order_id = order.id
                item_result = self._connection.execute(
                    insert(order_items).values(**self._item_to_row(item))
                )
                item.id = item_result.inserted_primary_key[0]
        else:
            self._connection.execute(
                update(orders).where(orders.c.id == order.id).values(**values)
            )

    # --- Serialization --------------------------------------------------------

    def _load(self, row: Row) -> Order:
        item_rows = self._connection.execute(
            select(order_items)
            .where(order_items.c.order_id == row.id)
            .order_by(order_items.c.id)
        ).all()
        return self._to_domain(row, [self._item_to_domain(r) for r in item_rows])

    @staticmethod
    def _to_row(order: Order) -> dict:
        return {
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "merchant_id": order.merchant_id,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "payment_method": order.payment_method.value,
            "payment_transaction_id": order.payment_transaction_id,
            "subtotal": order.subtotal.amount,
            "tax": order.tax.amount,
            "shipping": order.shipping.amount,
            "discount": order.discount.amount,
            "total": order.total.amount,
            "commission_per_unit": order.commission_per_unit.amount,
            "commission_amount": order.commission_amount.amount,
            "merchant_payout": order.merchant_payout.amount,
            "shipping_address": order.shipping_address.to_dict(),
            "shipping_method": order.shipping_method,
            "tracking_number": order.tracking_number,
            "notes": order.notes,
            "created_at": order.created_at,
            "shipped_at": order.shipped_at,
            "delivered_at": order.delivered_at,
            "paid_at": order.paid_at,
        }

    @staticmethod
    def _item_to_row(item: OrderItem) -> dict:
        return {
            "order_id": item.order_id,
            "product_id": item.product_id,
            "product_name": item.product_name,
            "product_sku": item.product_sku,
            "price": item.unit_price.amount,
            "quantity": item.quantity.value,
            "subtotal": item.subtotal.amount,
        }

    @staticmethod
    def _item_to_domain(row: Row) -> OrderItem:
        return OrderItem(
            id=row.id,
            order_id=row.order_id,
            product_id=row.product_id,
            product_name=row.product_name,
            product_sku=row.product_sku,
            unit_price=_money(row.price),
            quantity=Quantity(row.quantity),
            subtotal=_money(row.subtotal),
        )

    @staticmethod
    def _to_domain(row: Row, items: list[OrderItem]) -> Order:
        return Order(
            id=row.id,
            order_number=row.order_number,
            customer_id=row.customer_id,
            merchant_id=row.merchant_id,
            items=items,
            shipping_address=ShippingAddress.from_dict(row.shipping_address),
            payment_method=PaymentMethod(row.payment_method),
            subtotal=_money(row.subtotal),
            tax=_money(row.tax),
            shipping=_money(row.shipping),
            discount=_money(row.discount),
            total=_money(row.total),
            commission_per_unit=_money(row.commission_per_unit),
            commission_amount=_money(row.commission_amount),
            merchant_payout=_money(row.merchant_payout),
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            payment_transaction_id=row.payment_transaction_id,
            tracking_number=row.tracking_number,
            notes=row.notes,
            shipping_method=row.shipping_method,
            created_at=_aware(row.created_at),
            shipped_at=_aware(row.shipped_at),
            delivered_at=_aware(row.delivered_at),
            paid_at=_aware(row.paid_at),
        )


def _money(value) -> Money:
    return Money(Decimal(value))


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
