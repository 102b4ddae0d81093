"""PaySolutions payment gateway adapter.

Everything provider-specific lives here: form field names, the status
vocabulary, the callback signature scheme and the endpoints.

Callbacks are signed with a hex HMAC-SHA256 of the raw request body,
keyed with the shared secret, in the ``X-PaySolutions-Signature`` header.
"""

from __future__ import annotations

import hashlib
import hmac

import httpx
import structlog

from marketplace.domain.exceptions import PaymentGatewayError
from marketplace.domain.gateway import (
    GatewayStatus,
    PaymentGateway,
    PaymentInitiation,
    PaymentRequest,
)
from marketplace.domain.model.payment import PaymentCallback, PaymentOutcome

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-PaySolutions-Signature"

SUCCESS_CODES = frozenset({"00", "success", "paid", "completed"})
FAILURE_CODES = frozenset({"failed", "failure", "declined", "cancelled", "expired", "error"})

# The browser return carries the outcome under any of these names.
RETURN_STATUS_PARAMS = ("status", "result", "apCode", "respcode")

STATUS_PATH = "/secure/v3/payment/status"
CURRENCY_CODE = "00"


def map_status_code(code: str | None) -> PaymentOutcome:
    """Translate a PaySolutions status code into a PaymentOutcome.

    Unknown or missing codes are treated as still pending.
    """
    if code is None:
        return PaymentOutcome.PENDING
    normalized = str(code).strip().lower()
    if normalized in SUCCESS_CODES:
        return PaymentOutcome.SUCCEEDED
    if normalized in FAILURE_CODES:
        return PaymentOutcome.FAILED
    return PaymentOutcome.PENDING


def sign_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class PaySolutionsGateway(PaymentGateway):

    def __init__(
        self,
        api_url: str,
        payment_url: str,
        merchant_id: str,
        api_key: str,
        payment_link_name: str,
        secret_key: str,
        return_url: str,
        callback_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._payment_url = payment_url
        self._merchant_id = merchant_id
        self._api_key = api_key
        self._payment_link_name = payment_link_name
        self._secret_key = secret_key
        self._return_url = return_url
        self._callback_url = callback_url
        self._timeout = timeout
        self._transport = transport

    # --- Outbound -------------------------------------------------------------

    def initiate(self, request: PaymentRequest) -> PaymentInitiation:
        form_data = {
            "customeremail": request.customer_email,
            "productdetail": request.description,
            "refno": request.reference,
            "merchantid": self._merchant_id,
            "cc": CURRENCY_CODE,
            "total": f"{request.amount:.2f}",
            "lang": "TH",
            "resulturl1": self._return_url,
            "resulturl2": self._return_url,
            "postbackurl": self._callback_url,
        }
        logger.debug("paysolutions.initiate", reference=request.reference, total=form_data["total"])

        response = self._send("POST", self._payment_url, data=form_data)
        payment_url = response.headers.get("location") or self._payment_url
        transaction_id = _json_field(response, "transaction_id") or request.reference

        return PaymentInitiation(
            payment_url=payment_url,
            transaction_id=transaction_id,
            method="POST",
            form_data=form_data,
        )

    def check_status(self, reference: str) -> GatewayStatus:
        response = self._send(
            "POST",
            f"{self._api_url}{STATUS_PATH}",
            json={"merchant": self._payment_link_name, "refNo": reference},
            headers={"apikey": self._api_key},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise PaymentGatewayError("Payment provider returned a malformed status") from exc
        if not isinstance(data, dict):
            raise PaymentGatewayError("Payment provider returned a malformed status")

        status_code = data.get("status")
        return GatewayStatus(
            status_code=str(status_code) if status_code is not None else None,
            outcome=map_status_code(status_code),
            transaction_id=data.get("transaction_id") or data.get("transactionId"),
            raw=data,
        )

    # --- Inbound --------------------------------------------------------------

    def verify_signature(self, payload: bytes, signature: str | None) -> bool:
        if not self._secret_key or not signature:
            return False
        expected = sign_payload(payload, self._secret_key)
        return hmac.compare_digest(expected, signature.strip().lower())

    def parse_callback(self, payload: dict) -> PaymentCallback:
        status_code = payload.get("status")
        transaction_id = payload.get("transaction_id") or payload.get("transactionid")
        # Some deliveries carry the reference only under "merchant".
        reference = payload.get("refno") or payload.get("merchant")
        return PaymentCallback(
            order_reference=str(reference) if reference is not None else None,
            transaction_id=str(transaction_id) if transaction_id is not None else None,
            status_code=str(status_code) if status_code is not None else None,
            outcome=map_status_code(status_code),
            raw=dict(payload),
        )

    def infer_return_status(self, query: dict[str, str]) -> PaymentOutcome:
        for name in RETURN_STATUS_PARAMS:
            value = query.get(name)
            if value:
                return map_status_code(value)
        return PaymentOutcome.PENDING

    # --- Internal helpers -----------------------------------------------------

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise PaymentGatewayError("Payment provider timed out") from exc
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"Payment provider unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.warning(
                "paysolutions.http_error",
                url=url,
                status_code=response.status_code,
            )
            raise PaymentGatewayError(
                f"Payment provider rejected the request (HTTP {response.status_code})"
            )
        return response


def _json_field(response: httpx.Response, name: str) -> str | None:
    if "json" not in response.headers.get("content-type", ""):
        return None
    try:
        data = response.json()
    except ValueError:
        return None
    value = data.get(name) if isinstance(data, dict) else None
    return str(value) if value is not None else None
