"""HTTP API tests, with in-memory fakes behind the FastAPI app."""

import pytest
from fastapi.testclient import TestClient

from marketplace.domain.exceptions import PaymentGatewayError
from marketplace.infrastructure.api.app import create_app
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.gateway.paysolutions import SIGNATURE_HEADER
from tests.fakes import ADDRESS, FakeGateway, FakeStore, make_merchant, make_product, uow_factory_for

CUSTOMER = {"X-Customer-Id": "1"}


@pytest.fixture
def store():
    return FakeStore(
        products=[
            make_product(1, merchant_id=1, price="100"),
            make_product(2, merchant_id=1, price="100"),
            make_product(3, merchant_id=2, price="50", stock=3),
        ],
        merchants=[make_merchant(1), make_merchant(2)],
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(store, gateway):
    app = create_app(Settings(), uow_factory=uow_factory_for(store), gateway=gateway)
    return TestClient(app)


def _checkout(items, shipping="30", tax="12", total=None):
    subtotal = sum(qty * float(price) for _, qty, price in items)
    return {
        "items": [{"product_id": pid, "quantity": qty, "price": price} for pid, qty, price in items],
        "shipping_address": ADDRESS,
        "payment_method": "card",
        "subtotal": f"{subtotal:.2f}",
        "shipping_fee": shipping,
        "tax": tax,
        "total": total or f"{subtotal + float(shipping) + float(tax):.2f}",
    }


def _place(client, items=((1, 1, "100"),)):
    response = client.post("/orders", json=_checkout(list(items)), headers=CUSTOMER)
    assert response.status_code == 201, response.text
    return response.json()


class TestCheckoutEndpoint:

    def test_split_checkout(self, client):
        body = _place(client, [(1, 1, "100"), (2, 1, "100"), (3, 1, "50")])

        assert body["message"] == "Order placed successfully"
        assert body["order"] == body["orders"][0]
        assert [o["total"] for o in body["orders"]] == ["228.00", "64.00"]

    def test_requires_customer(self, client):
        response = client.post("/orders", json=_checkout([(1, 1, "100")]))
        assert response.status_code == 401

    def test_invalid_cart_is_400(self, client):
        response = client.post("/orders", json=_checkout([(9, 1, "100")]), headers=CUSTOMER)
        assert response.status_code == 400
        assert "invalid or not available" in response.json()["message"]

    def test_insufficient_stock_is_422(self, client, store):
        response = client.post("/orders", json=_checkout([(3, 5, "50")]), headers=CUSTOMER)

        assert response.status_code == 422
        body = response.json()
        assert (body["product_id"], body["requested"], body["available"]) == (3, 5, 3)
        assert store.orders == {}

    def test_schema_violation_is_422(self, client):
        payload = _checkout([(1, 1, "100")])
        payload["items"][0]["quantity"] = 0
        response = client.post("/orders", json=payload, headers=CUSTOMER)
        assert response.status_code == 422

    def test_total_mismatch_is_400(self, client):
        response = client.post(
            "/orders", json=_checkout([(1, 1, "100")], total="1.00"), headers=CUSTOMER
        )
        assert response.status_code == 400


class TestOrderEndpoints:

    def test_list_and_show(self, client):
        order = _place(client)["order"]

        listed = client.get("/orders", headers=CUSTOMER).json()["orders"]
        shown = client.get(f"/orders/{order['id']}", headers=CUSTOMER).json()["order"]

        assert [o["id"] for o in listed] == [order["id"]]
        assert shown["order_number"] == order["order_number"]

    def test_other_customer_gets_404(self, client):
        order = _place(client)["order"]
        response = client.get(f"/orders/{order['id']}", headers={"X-Customer-Id": "2"})
        assert response.status_code == 404

    def test_cancel_then_cancel_again(self, client, store):
        order = _place(client)["order"]

        first = client.put(f"/orders/{order['id']}/cancel", headers=CUSTOMER)
        second = client.put(f"/orders/{order['id']}/cancel", headers=CUSTOMER)

        assert first.status_code == 200
        assert first.json()["order"]["status"] == "cancelled"
        assert second.status_code == 400
        assert store.products[1].stock == 10

    def test_status_update(self, client):
        order = _place(client)["order"]

        client.put(f"/orders/{order['id']}/status", json={"status": "processing"})
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "shipped", "tracking_number": "TH1"},
            headers={"X-Merchant-Id": "1"},
        )

        assert response.status_code == 200
        assert response.json()["order"]["tracking_number"] == "TH1"

    def test_illegal_status_update_is_400(self, client):
        order = _place(client)["order"]
        response = client.put(f"/orders/{order['id']}/status", json={"status": "delivered"})
        assert response.status_code == 400


class TestPaymentEndpoints:

    def test_initiate(self, client):
        order = _place(client)["order"]

        response = client.post("/payment/initiate", json={"order_id": order["id"]}, headers=CUSTOMER)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["form_data"]["refno"] == "000000000001"

    def test_initiate_gateway_failure_is_500(self, client, gateway, store):
        order = _place(client)["order"]
        gateway.initiate_error = PaymentGatewayError("Payment provider timed out")

        response = client.post("/payment/initiate", json={"order_id": order["id"]}, headers=CUSTOMER)

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert store.orders[order["id"]].payment_status.value == "pending"

    def test_callback_is_idempotent(self, client, store):
        order = _place(client)["order"]
        body = '{"refno": "000000000001", "transaction_id": "TXN-1", "status": "00"}'
        headers = {SIGNATURE_HEADER: FakeGateway.VALID_SIGNATURE, "Content-Type": "application/json"}

        first = client.post("/payment/callback", content=body, headers=headers)
        second = client.post("/payment/callback", content=body, headers=headers)

        assert first.json() == {"success": True, "message": "Callback processed successfully"}
        assert second.json() == {"success": True, "message": "Order already processed"}
        assert store.orders[order["id"]].payment_status.value == "paid"

    def test_callback_bad_signature_is_400(self, client):
        response = client.post(
            "/payment/callback",
            content='{"refno": "000000000001", "status": "00"}',
            headers={SIGNATURE_HEADER: "forged"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_callback_for_unknown_order_is_acknowledged(self, client):
        response = client.post(
            "/payment/callback",
            content="refno=000000000099&status=00",
            headers={
                SIGNATURE_HEADER: FakeGateway.VALID_SIGNATURE,
                "Content-Type": "application/x-www-form-urlencoded",
            },
        )
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Order not found"}

    def test_callback_restock_error_is_acknowledged(self, client, store):
        _place(client)
        del store.products[1]

        response = client.post(
            "/payment/callback",
            content='{"refno": "000000000001", "status": "failed"}',
            headers={SIGNATURE_HEADER: FakeGateway.VALID_SIGNATURE, "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_return(self, client):
        _place(client)
        response = client.get("/payment/return", params={"refno": "000000000001", "status": "00"})
        assert response.status_code == 200
        assert response.json()["inferred_status"] == "succeeded"

    def test_return_without_reference_is_422(self, client):
        assert client.get("/payment/return").status_code == 422

    def test_payment_status(self, client):
        order = _place(client)["order"]
        response = client.get(f"/orders/{order['id']}/payment-status", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["payment_status"] == "pending"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
