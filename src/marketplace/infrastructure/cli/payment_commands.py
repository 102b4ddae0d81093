"""CLI commands for payments."""

from __future__ import annotations

import click

from marketplace.application.check_payment_status import CheckPaymentStatusHandler
from marketplace.application.reconcile_payment import ReconcilePaymentHandler
from marketplace.domain.exceptions import DomainException
from marketplace.infrastructure.bootstrap import default_uow_factory, payment_gateway
from marketplace.infrastructure.config import Settings


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to query.")
@click.pass_obj
def payment_status(settings: Settings, order_id: int) -> None:
    """Show local and provider payment status (read-only)."""
    handler = CheckPaymentStatusHandler(default_uow_factory(settings), payment_gateway(settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id}  (status={dto.order_status}, payment={dto.payment_status})")
    if dto.gateway_status is None:
        click.echo("Provider status: unavailable")
    else:
        click.echo(f"Provider status: {dto.gateway_status}")


@click.command("reconcile")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to reconcile.")
@click.pass_obj
def payment_reconcile(settings: Settings, order_id: int) -> None:
    """Poll the provider and apply its answer to the order."""
    handler = ReconcilePaymentHandler(default_uow_factory(settings), payment_gateway(settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} reconciled  (status={dto.order_status}, payment={dto.payment_status})")
