"""FastAPI application factory and error mapping."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    IllegalTransitionError,
    InsufficientStockError,
    InvalidCallbackSignatureError,
    InvalidCartError,
    PaymentGatewayError,
    ValidationError,
)
from marketplace.domain.gateway import PaymentGateway
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory
from marketplace.infrastructure import bootstrap
from marketplace.infrastructure.api.routes import order_router, payment_router
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.logging import configure_logging
from marketplace.infrastructure.persistence.tables import init_db


def create_app(
    settings: Settings | None = None,
    uow_factory: UnitOfWorkFactory | None = None,
    gateway: PaymentGateway | None = None,
) -> FastAPI:
    """Build the API.  Collaborators default to the configured ones."""
    settings = settings or Settings.from_env()

    if uow_factory is None:
        configure_logging(settings)
        engine = bootstrap.engine_for(settings)
        init_db(engine)
        uow_factory = bootstrap.uow_factory(engine)

    app = FastAPI(title="Marketplace Checkout")
    app.state.settings = settings
    app.state.uow_factory = uow_factory
    app.state.gateway = gateway or bootstrap.payment_gateway(settings)

    app.include_router(order_router)
    app.include_router(payment_router)
    _register_error_handlers(app)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    return app


def _register_error_handlers(app: FastAPI) -> None:

    def _message(status_code: int):
        def handler(request: Request, exc: DomainException) -> JSONResponse:
            return JSONResponse(status_code=status_code, content={"message": str(exc)})
        return handler

    app.add_exception_handler(InvalidCartError, _message(400))
    app.add_exception_handler(IllegalTransitionError, _message(400))
    app.add_exception_handler(ValidationError, _message(422))
    app.add_exception_handler(EntityNotFoundError, _message(404))
    app.add_exception_handler(DomainException, _message(400))

    @app.exception_handler(InsufficientStockError)
    def insufficient_stock(request: Request, exc: InsufficientStockError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "message": "Failed to create order",
                "error": str(exc),
                "product_id": exc.product_id,
                "requested": exc.requested,
                "available": exc.available,
            },
        )

    @app.exception_handler(InvalidCallbackSignatureError)
    def bad_signature(request: Request, exc: InvalidCallbackSignatureError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})

    @app.exception_handler(PaymentGatewayError)
    def gateway_error(request: Request, exc: PaymentGatewayError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
