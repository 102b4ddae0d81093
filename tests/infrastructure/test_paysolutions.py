"""Tests for the PaySolutions gateway adapter, over httpx.MockTransport."""

import json
from decimal import Decimal

import httpx
import pytest

from marketplace.domain.exceptions import PaymentGatewayError
from marketplace.domain.gateway import PaymentRequest
from marketplace.domain.model.payment import PaymentOutcome
from marketplace.infrastructure.gateway.paysolutions import (
    PaySolutionsGateway,
    map_status_code,
    sign_payload,
)

SECRET = "shh"


def _gateway(handler=None, secret=SECRET):
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(200)))
    return PaySolutionsGateway(
        api_url="https://api.paysolutions.test/",
        payment_url="https://pay.paysolutions.test/payment",
        merchant_id="M123",
        api_key="key-1",
        payment_link_name="shop",
        secret_key=secret,
        return_url="https://shop.test/payment/return",
        callback_url="https://shop.test/payment/callback",
        transport=transport,
    )


def _request():
    return PaymentRequest(
        reference="000000000042",
        amount=Decimal("228"),
        customer_email="somchai@example.com",
        customer_name="Somchai",
        customer_phone="0812345678",
        description="Order ORD-20250301-ABC",
    )


class TestMapStatusCode:

    @pytest.mark.parametrize("code", ["00", "success", "PAID", " completed "])
    def test_success_codes(self, code):
        assert map_status_code(code) is PaymentOutcome.SUCCEEDED

    @pytest.mark.parametrize("code", ["failed", "DECLINED", "cancelled", "expired", "error", "failure"])
    def test_failure_codes(self, code):
        assert map_status_code(code) is PaymentOutcome.FAILED

    @pytest.mark.parametrize("code", [None, "", "processing", "99"])
    def test_anything_else_is_pending(self, code):
        assert map_status_code(code) is PaymentOutcome.PENDING


class TestInitiate:

    def test_posts_form_with_zero_padded_reference(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = request.content.decode()
            return httpx.Response(302, headers={"location": "https://pay.paysolutions.test/go/1"})

        result = _gateway(handler).initiate(_request())

        assert seen["url"] == "https://pay.paysolutions.test/payment"
        assert "refno=000000000042" in seen["body"]
        assert "total=228.00" in seen["body"]
        assert "merchantid=M123" in seen["body"]
        assert result.payment_url == "https://pay.paysolutions.test/go/1"
        assert result.transaction_id == "000000000042"
        assert result.form_data["postbackurl"] == "https://shop.test/payment/callback"

    def test_uses_provider_transaction_id_when_given(self):
        result = _gateway(lambda r: httpx.Response(200, json={"transaction_id": "T-9"})).initiate(
            _request()
        )
        assert result.transaction_id == "T-9"
        assert result.payment_url == "https://pay.paysolutions.test/payment"

    def test_http_error_raises_gateway_error(self):
        with pytest.raises(PaymentGatewayError, match="HTTP 503"):
            _gateway(lambda r: httpx.Response(503)).initiate(_request())

    def test_timeout_raises_gateway_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PaymentGatewayError, match="timed out"):
            _gateway(handler).initiate(_request())

    def test_connection_error_raises_gateway_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PaymentGatewayError, match="unreachable"):
            _gateway(handler).initiate(_request())


class TestCheckStatus:

    def test_queries_status_endpoint(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["json"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "00", "transaction_id": "T-1"})

        status = _gateway(handler).check_status("000000000042")

        assert seen["url"] == "https://api.paysolutions.test/secure/v3/payment/status"
        assert seen["apikey"] == "key-1"
        assert seen["json"] == {"merchant": "shop", "refNo": "000000000042"}
        assert status.outcome is PaymentOutcome.SUCCEEDED
        assert status.transaction_id == "T-1"

    def test_malformed_answer(self):
        with pytest.raises(PaymentGatewayError, match="malformed"):
            _gateway(lambda r: httpx.Response(200, text="<html>")).check_status("1")


class TestCallbacks:

    def test_valid_signature(self):
        body = b'{"refno": "000000000042"}'
        assert _gateway().verify_signature(body, sign_payload(body, SECRET))

    def test_tampered_body_rejected(self):
        signature = sign_payload(b'{"status": "failed"}', SECRET)
        assert not _gateway().verify_signature(b'{"status": "00"}', signature)

    def test_missing_signature_rejected(self):
        assert not _gateway().verify_signature(b"{}", None)

    def test_no_secret_configured_rejects_everything(self):
        body = b"{}"
        assert not _gateway(secret="").verify_signature(body, sign_payload(body, ""))

    def test_parse_callback(self):
        callback = _gateway().parse_callback(
            {"refno": "000000000042", "transactionid": "T-5", "status": "declined"}
        )
        assert callback.order_reference == "000000000042"
        assert callback.transaction_id == "T-5"
        assert callback.outcome is PaymentOutcome.FAILED

    def test_parse_callback_falls_back_to_merchant_reference(self):
        callback = _gateway().parse_callback({"merchant": "000000000042", "status": "00"})
        assert callback.order_reference == "000000000042"
        assert callback.outcome is PaymentOutcome.SUCCEEDED

    @pytest.mark.parametrize(
        "query, outcome",
        [
            ({"status": "00"}, PaymentOutcome.SUCCEEDED),
            ({"result": "failed"}, PaymentOutcome.FAILED),
            ({"apCode": "success"}, PaymentOutcome.SUCCEEDED),
            ({"respcode": "expired"}, PaymentOutcome.FAILED),
            ({"refno": "1"}, PaymentOutcome.PENDING),
        ],
    )
    def test_infer_return_status(self, query, outcome):
        assert _gateway().infer_return_status(query) is outcome
