import click
import uvicorn

from marketplace.infrastructure.bootstrap import engine_for
from marketplace.infrastructure.cli.order_commands import (
    order_cancel,
    order_list,
    order_show,
    order_status,
)
from marketplace.infrastructure.cli.payment_commands import payment_reconcile, payment_status
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.logging import configure_logging
from marketplace.infrastructure.persistence.tables import init_db


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Marketplace checkout"""
    if ctx.obj is None:
        ctx.obj = Settings.from_env()
    configure_logging(ctx.obj)


@cli.group()
def db() -> None:
    """Manage the database."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def payment() -> None:
    """Manage payments."""


@db.command("init")
@click.pass_obj
def db_init(settings: Settings) -> None:
    """Create any missing tables."""
    init_db(engine_for(settings))
    click.echo("Database initialised.")


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    uvicorn.run(
        "marketplace.infrastructure.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_status)
payment.add_command(payment_reconcile)
payment.add_command(payment_status)
