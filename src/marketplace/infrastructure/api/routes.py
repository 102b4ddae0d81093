"""FastAPI routes for checkout, orders and payments.

Route functions are plain ``def`` so each request runs on its own worker
thread; the payment callback is the exception because it needs the raw
body for signature verification.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from marketplace.application.cancel_order import CancelOrderHandler
from marketplace.application.check_payment_status import CheckPaymentStatusHandler
from marketplace.application.dto import CartItemSpec, CheckoutRequest
from marketplace.application.initiate_payment import InitiatePaymentHandler
from marketplace.application.list_orders import ListOrdersHandler
from marketplace.application.payment_return import PaymentReturnHandler
from marketplace.application.place_order import PlaceOrderHandler
from marketplace.application.process_payment_callback import ProcessPaymentCallbackHandler
from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.infrastructure.api.schemas import (
    InitiatePaymentRequest,
    PlaceOrderRequest,
    UpdateOrderStatusRequest,
)
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.gateway.paysolutions import SIGNATURE_HEADER

# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_uow_factory(request: Request) -> UnitOfWorkFactory:
    return request.app.state.uow_factory


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def current_customer(x_customer_id: int | None = Header(default=None)) -> CustomerContext:
    """The authenticated customer, as asserted by the auth layer in front of us."""
    if x_customer_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return CustomerContext(id=x_customer_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
def place_order(
    body: PlaceOrderRequest,
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Split the cart into one order per merchant and place them all."""
    handler = PlaceOrderHandler(uow_factory, total_tolerance=settings.total_tolerance)
    orders = handler.handle(
        CheckoutRequest(
            customer=customer,
            items=[
                CartItemSpec(product_id=i.product_id, quantity=i.quantity, price=str(i.price))
                for i in body.items
            ],
            shipping_address=body.shipping_address.model_dump(),
            payment_method=body.payment_method,
            subtotal=str(body.subtotal),
            shipping_fee=str(body.shipping_fee),
            tax=str(body.tax),
            total=str(body.total),
            notes=body.notes,
        )
    )
    payload = [asdict(o) for o in orders]
    return {"message": "Order placed successfully", "order": payload[0], "orders": payload}


@order_router.get("")
def list_orders(
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> dict:
    orders = ListOrdersHandler(uow_factory).handle(customer)
    return {"orders": [asdict(o) for o in orders]}


@order_router.get("/{order_id}")
def show_order(
    order_id: int,
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> dict:
    return {"order": asdict(ShowOrderHandler(uow_factory).handle(order_id, customer))}


@order_router.put("/{order_id}/cancel")
def cancel_order(
    order_id: int,
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> dict:
    """Cancel a pending or processing order and put its stock back."""
    order = CancelOrderHandler(uow_factory).handle(order_id, customer)
    return {"message": "Order cancelled successfully", "order": asdict(order)}


@order_router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    body: UpdateOrderStatusRequest,
    x_merchant_id: int | None = Header(default=None),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> dict:
    """Merchant/admin status change (ship, deliver, ...)."""
    order = UpdateOrderStatusHandler(uow_factory).handle(
        order_id,
        body.status,
        tracking_number=body.tracking_number,
        merchant_id=x_merchant_id,
    )
    return {"message": "Order status updated successfully", "order": asdict(order)}


@order_router.get("/{order_id}/payment-status")
def payment_status(
    order_id: int,
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
) -> dict:
    status = CheckPaymentStatusHandler(uow_factory, gateway).handle(order_id, customer)
    return {
        "success": True,
        "payment_status": status.payment_status,
        "order_status": status.order_status,
        "gateway_status": status.gateway_status,
    }


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payment", tags=["payments"])


@payment_router.post("/initiate")
def initiate_payment(
    body: InitiatePaymentRequest,
    customer: CustomerContext = Depends(current_customer),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
):
    result = InitiatePaymentHandler(uow_factory, gateway).handle(body.order_id, customer)
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to initiate payment", "error": result.error},
        )
    return {
        "success": True,
        "payment_url": result.payment_url,
        "transaction_id": result.transaction_id,
        "method": result.method,
        "form_data": result.form_data,
    }


@payment_router.post("/callback")
async def payment_callback(
    request: Request,
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
) -> dict:
    """Provider webhook.  Acknowledged with 200 unless the signature is bad."""
    body = await request.body()
    handler = ProcessPaymentCallbackHandler(uow_factory, gateway)
    result = await run_in_threadpool(
        handler.handle,
        body,
        request.headers.get("content-type"),
        request.headers.get(SIGNATURE_HEADER),
    )
    return {"success": result.success, "message": result.message}


@payment_router.get("/return")
def payment_return(
    request: Request,
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
) -> dict:
    result = PaymentReturnHandler(uow_factory, gateway).handle(dict(request.query_params))
    return asdict(result)
