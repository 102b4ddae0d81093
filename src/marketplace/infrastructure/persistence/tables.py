"""SQLAlchemy Core schema for the checkout tables."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

MONEY = Numeric(12, 2)

merchants = Table(
    "merchants",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("business_name", String(255), nullable=False),
    Column("commission_per_unit", MONEY, nullable=False, default=0),
    Column("is_approved", Boolean, nullable=False, default=False),
    Column("total_sales", Integer, nullable=False, default=0),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("merchant_id", Integer, ForeignKey("merchants.id"), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("sku", String(100), nullable=False),
    Column("price", MONEY, nullable=False),
    Column("sale_price", MONEY, nullable=True),
    Column("stock", Integer, nullable=False, default=0),
    Column("total_sales", Integer, nullable=False, default=0),
    Column("is_active", Boolean, nullable=False, default=True),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("order_number", String(40), nullable=False, unique=True),
    Column("customer_id", Integer, nullable=False, index=True),
    Column("merchant_id", Integer, ForeignKey("merchants.id"), nullable=False, index=True),
    Column("status", String(20), nullable=False),
    Column("payment_status", String(20), nullable=False),
    Column("payment_method", String(20), nullable=False),
    Column("payment_transaction_id", String(100), nullable=True),
    Column("subtotal", MONEY, nullable=False),
    Column("tax", MONEY, nullable=False),
    Column("shipping", MONEY, nullable=False),
    Column("discount", MONEY, nullable=False),
    Column("total", MONEY, nullable=False),
    Column("commission_per_unit", MONEY, nullable=False),
    Column("commission_amount", MONEY, nullable=False),
    Column("merchant_payout", MONEY, nullable=False),
    Column("shipping_address", JSON, nullable=False),
    Column("shipping_method", String(40), nullable=False),
    Column("tracking_number", String(100), nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("shipped_at", DateTime(timezone=True), nullable=True),
    Column("delivered_at", DateTime(timezone=True), nullable=True),
    Column("paid_at", DateTime(timezone=True), nullable=True),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("product_name", String(255), nullable=False),
    Column("product_sku", String(100), nullable=False),
    Column("price", MONEY, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("subtotal", MONEY, nullable=False),
)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
