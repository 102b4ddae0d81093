"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.gateway.paysolutions import PaySolutionsGateway
from marketplace.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork


def engine_for(settings: Settings, **engine_options) -> Engine:
    if settings.database_url.startswith("sqlite:///"):
        Path(settings.database_url.removeprefix("sqlite:///")).parent.mkdir(
            parents=True, exist_ok=True
        )
    engine = create_engine(settings.database_url, **engine_options)
    if engine.dialect.name == "sqlite":
        _begin_immediate(engine)
    return engine


def _begin_immediate(engine: Engine) -> None:
    """Take SQLite's write lock when a transaction begins.

    SQLite ignores ``FOR UPDATE``, and pysqlite defers ``BEGIN`` until the
    first write, so a locked read would otherwise see stale stock.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def uow_factory(engine: Engine) -> UnitOfWorkFactory:
    return lambda: SqlUnitOfWork(engine)


def payment_gateway(settings: Settings) -> PaySolutionsGateway:
    return PaySolutionsGateway(
        api_url=settings.paysolutions_api_url,
        payment_url=settings.paysolutions_payment_url,
        merchant_id=settings.paysolutions_merchant_id,
        api_key=settings.paysolutions_api_key,
        payment_link_name=settings.payment_link_name,
        secret_key=settings.paysolutions_secret_key,
        return_url=settings.return_url,
        callback_url=settings.callback_url,
        timeout=settings.gateway_timeout,
    )


def default_uow_factory(settings: Settings) -> UnitOfWorkFactory:
    return uow_factory(engine_for(settings))
