"""Integration tests for the PlaceOrder (checkout) use case."""

from decimal import Decimal

import pytest

from marketplace.application.place_order import PlaceOrderHandler
from marketplace.domain.exceptions import (
    InsufficientStockError,
    InvalidCartError,
    ValidationError,
)
from marketplace.domain.model.order import OrderStatus, PaymentStatus
from tests.fakes import FakeStore, checkout_request, make_merchant, make_product, uow_factory_for


def _setup(stock_3=10):
    store = FakeStore(
        products=[
            make_product(1, merchant_id=1, price="100"),
            make_product(2, merchant_id=1, price="100"),
            make_product(3, merchant_id=2, price="50", stock=stock_3),
        ],
        merchants=[make_merchant(1, commission="5"), make_merchant(2, commission="2")],
    )
    return store, PlaceOrderHandler(uow_factory_for(store))


class TestPlaceOrderHappyPath:

    def test_multi_merchant_cart_becomes_one_order_per_merchant(self):
        store, handler = _setup()

        orders = handler.handle(
            checkout_request([(1, 1, "100"), (2, 1, "100"), (3, 1, "50")], shipping="30", tax="12")
        )

        assert len(orders) == 2
        m1, m2 = orders
        assert (m1.merchant_id, m1.subtotal, m1.shipping, m1.tax, m1.total) == (
            1, "200.00", "20.00", "8.00", "228.00"
        )
        assert (m2.merchant_id, m2.subtotal, m2.shipping, m2.tax, m2.total) == (
            2, "50.00", "10.00", "4.00", "64.00"
        )

    def test_commission_and_payout_per_merchant(self):
        _, handler = _setup()

        m1, m2 = handler.handle(
            checkout_request([(1, 1, "100"), (2, 1, "100"), (3, 1, "50")], shipping="30", tax="12")
        )

        assert (m1.commission_amount, m1.merchant_payout) == ("10.00", "218.00")
        assert (m2.commission_amount, m2.merchant_payout) == ("2.00", "62.00")

    def test_orders_start_pending_with_shared_address(self):
        _, handler = _setup()

        orders = handler.handle(checkout_request([(1, 2, "100"), (3, 1, "50")]))

        for dto in orders:
            assert dto.status == OrderStatus.PENDING.value
            assert dto.payment_status == PaymentStatus.PENDING.value
            assert dto.customer_id == 1
            assert dto.shipping_address["city"] == "Bangkok"
        assert orders[0].order_number != orders[1].order_number

    def test_stock_and_counters_updated_in_one_commit(self):
        store, handler = _setup()

        handler.handle(checkout_request([(1, 2, "100"), (3, 1, "50")]))

        assert store.products[1].stock == 8
        assert store.products[1].total_sales == 2
        assert store.products[3].stock == 9
        assert store.merchants[1].total_sales == 1
        assert store.merchants[2].total_sales == 1
        assert store.commits == 1

    def test_catalog_price_wins_over_stale_client_price(self):
        _, handler = _setup()

        (order,) = handler.handle(checkout_request([(1, 1, "99.99")], total="100.00"))

        assert order.items[0].unit_price == "100.00"
        assert order.total == "100.00"

    def test_client_total_within_tolerance_accepted(self):
        _, handler = _setup()
        (order,) = handler.handle(checkout_request([(1, 1, "100")], total="100.01"))
        assert order.total == "100.00"


class TestPlaceOrderIsAllOrNothing:

    def test_insufficient_stock_creates_nothing(self):
        store, handler = _setup(stock_3=3)

        with pytest.raises(InsufficientStockError) as excinfo:
            handler.handle(checkout_request([(3, 5, "50")]))

        assert excinfo.value.available == 3
        assert store.products[3].stock == 3
        assert store.orders == {}

    def test_failure_on_second_merchant_rolls_back_the_first(self):
        store, handler = _setup(stock_3=0)

        with pytest.raises(InsufficientStockError):
            handler.handle(checkout_request([(1, 2, "100"), (3, 1, "50")]))

        assert store.orders == {}
        assert store.products[1].stock == 10
        assert store.products[1].total_sales == 0
        assert store.merchants[1].total_sales == 0
        assert store.commits == 0


class TestPlaceOrderValidation:

    def test_empty_cart_rejected(self):
        _, handler = _setup()
        with pytest.raises(InvalidCartError, match="at least one item"):
            handler.handle(checkout_request([]))

    def test_inactive_product_rejected(self):
        store, handler = _setup()
        store.products[2].is_active = False

        with pytest.raises(InvalidCartError, match="Product #2"):
            handler.handle(checkout_request([(1, 1, "100"), (2, 1, "100")]))
        assert store.products[1].stock == 10

    def test_unapproved_merchant_rejected(self):
        store, handler = _setup()
        store.merchants[2].is_approved = False

        with pytest.raises(InvalidCartError, match="unapproved merchant"):
            handler.handle(checkout_request([(3, 1, "50")]))

    def test_total_mismatch_rejected(self):
        store, handler = _setup()

        with pytest.raises(InvalidCartError, match="does not match current prices"):
            handler.handle(checkout_request([(1, 1, "100")], total="90.00"))
        assert store.orders == {}

    def test_unsupported_payment_method(self):
        _, handler = _setup()
        with pytest.raises(ValidationError, match="Unsupported payment method"):
            handler.handle(checkout_request([(1, 1, "100")], payment_method="bitcoin"))

    def test_zero_quantity_rejected(self):
        _, handler = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            handler.handle(checkout_request([(1, 0, "100")]))

    def test_custom_tolerance(self):
        store, _ = _setup()
        handler = PlaceOrderHandler(uow_factory_for(store), total_tolerance=Decimal("5"))
        (order,) = handler.handle(checkout_request([(1, 1, "100")], total="104"))
        assert order.total == "100.00"
