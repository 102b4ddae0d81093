"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the HTTP and CLI layers can catch them uniformly and translate them into
structured responses.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidCartError(ValidationError):
    """The cart references a missing/inactive product or an unapproved merchant.

    Raised before any mutation takes place.
    """


class InsufficientStockError(DomainException):
    """A line asks for more units than the product has in stock.

    Aborts the whole checkout transaction, including orders already
    built for other merchants.
    """

    def __init__(self, product_id: int, requested: int, available: int, product_name: str | None = None) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or f"product #{product_id}"
        super().__init__(
            f"Insufficient stock for {label} "
            f"(requested {requested}, available {available})"
        )


class IllegalTransitionError(DomainException):
    """An order-status or payment-status change is not permitted."""

    def __init__(self, subject: str, current: str, requested: str, reason: str | None = None) -> None:
        self.subject = subject
        self.current = current
        self.requested = requested
        message = f"Cannot move {subject} from '{current}' to '{requested}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class OrderNotFoundError(EntityNotFoundError):
    """The order does not exist, or is not visible to the caller."""


class PaymentGatewayError(DomainException):
    """The outbound call to the payment provider failed or timed out.

    The order is left untouched and the caller may retry.
    """


class InvalidCallbackSignatureError(DomainException):
    """An inbound webhook failed signature verification."""


class ConfigurationError(DomainException):
    """The runtime configuration is missing or malformed."""
