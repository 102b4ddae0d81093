"""Tests for the click command-line interface."""

import pytest
from click.testing import CliRunner

from marketplace.application.place_order import PlaceOrderHandler
from marketplace.infrastructure.cli.main import cli
from marketplace.infrastructure.config import Settings
from tests.fakes import checkout_request


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    # CliRunner swaps stdout; keep the root handlers pointing at the real one.
    monkeypatch.setattr("marketplace.infrastructure.cli.main.configure_logging", lambda settings: None)


@pytest.fixture
def settings(engine, uow_factory):
    return Settings(database_url=str(engine.url), environment="test")


@pytest.fixture
def order(uow_factory):
    (order,) = PlaceOrderHandler(uow_factory).handle(checkout_request([(1, 2, "100")]))
    return order


def _run(settings, *args):
    return CliRunner().invoke(cli, list(args), obj=settings)


class TestOrderCommands:

    def test_show(self, settings, order):
        result = _run(settings, "order", "show", "--id", str(order.id))
        assert result.exit_code == 0, result.output
        assert order.order_number in result.output
        assert "SKU-1" in result.output

    def test_list(self, settings, order):
        result = _run(settings, "order", "list", "--customer", "1")
        assert result.exit_code == 0, result.output
        assert order.order_number in result.output

    def test_cancel_twice(self, settings, order):
        first = _run(settings, "order", "cancel", "--id", str(order.id))
        second = _run(settings, "order", "cancel", "--id", str(order.id))

        assert first.exit_code == 0
        assert "stock restored" in first.output
        assert second.exit_code == 1
        assert "Cannot move order" in second.output

    def test_status(self, settings, order):
        result = _run(settings, "order", "status", "--id", str(order.id), "--status", "processing")
        assert result.exit_code == 0, result.output
        assert "is now processing" in result.output

    def test_missing_order(self, settings):
        result = _run(settings, "order", "show", "--id", "99")
        assert result.exit_code == 1
        assert "not found" in result.output


def test_db_init(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'fresh' / 'db.sqlite'}", environment="test")
    result = _run(settings, "db", "init")
    assert result.exit_code == 0, result.output
    assert (tmp_path / "fresh" / "db.sqlite").exists()
