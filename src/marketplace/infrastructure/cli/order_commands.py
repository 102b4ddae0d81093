"""CLI commands for orders (support and merchant tooling)."""

from __future__ import annotations

import click

from marketplace.application.cancel_order import CancelOrderHandler
from marketplace.application.dto import OrderDTO
from marketplace.application.list_orders import ListOrdersHandler
from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.exceptions import DomainException
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.model.order import OrderStatus
from marketplace.infrastructure.bootstrap import default_uow_factory
from marketplace.infrastructure.config import Settings


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Customer: #{dto.customer_id}   Merchant: #{dto.merchant_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    click.echo()

    click.echo(f"  {'Product':<24} {'SKU':<12} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*65}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.product_sku:<12} {item.quantity:>5} "
            f"{item.unit_price:>10} {item.subtotal:>10}"
        )
    click.echo(f"  {'-'*65}")
    click.echo(f"  {'Subtotal':<44} {dto.subtotal:>20}")
    click.echo(f"  {'Shipping':<44} {dto.shipping:>20}")
    click.echo(f"  {'Tax':<44} {dto.tax:>20}")
    click.echo(f"  {'Order Total':<44} {dto.total:>20}")
    click.echo(f"  {'Commission':<44} {dto.commission_amount:>20}")
    click.echo(f"  {'Merchant Payout':<44} {dto.merchant_payout:>20}")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(settings: Settings, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(default_uow_factory(settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--customer", "customer_id", required=True, type=int, help="Customer ID.")
@click.pass_obj
def order_list(settings: Settings, customer_id: int) -> None:
    """List a customer's orders, newest first."""
    handler = ListOrdersHandler(default_uow_factory(settings))
    orders = handler.handle(CustomerContext(id=customer_id))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':>6} {'Number':<30} {'Merchant':>8} {'Status':<12} {'Payment':<10} {'Total':>10}")
    click.echo("-" * 81)
    for dto in orders:
        click.echo(
            f"{dto.id:>6} {dto.order_number:<30} {dto.merchant_id:>8} "
            f"{dto.status:<12} {dto.payment_status:<10} {dto.total:>10}"
        )


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.pass_obj
def order_cancel(settings: Settings, order_id: int) -> None:
    """Cancel an order and return its items to stock."""
    handler = CancelOrderHandler(default_uow_factory(settings))

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled; stock restored.")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to update.")
@click.option(
    "--status",
    "new_status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="New order status.",
)
@click.option("--tracking", "tracking_number", default=None, help="Tracking number (when shipping).")
@click.pass_obj
def order_status(settings: Settings, order_id: int, new_status: str, tracking_number: str | None) -> None:
    """Move an order through its lifecycle."""
    handler = UpdateOrderStatusHandler(default_uow_factory(settings))

    try:
        dto = handler.handle(order_id, new_status, tracking_number=tracking_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {dto.status}.")
