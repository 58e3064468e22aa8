"""
Domain errors for the brokerage back office.

Services raise these; the API layer maps each kind to an HTTP status
in ``brokerage.core.error_handlers``. No framework imports here.
"""
from decimal import Decimal


class BrokerageError(Exception):
    """Base error for all brokerage domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class NotFoundError(BrokerageError):
    """Raised when a requested record does not exist."""


class AssetNotFoundError(NotFoundError):
    """Raised when a customer has no balance row for an asset."""

    def __init__(self, customer_id: str, asset_name: str) -> None:
        super().__init__(f"Asset not found: {asset_name} for customer: {customer_id}")
        self.customer_id = customer_id
        self.asset_name = asset_name


class OrderNotFoundError(NotFoundError):
    """Raised when an order id is unknown."""

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class ForbiddenError(BrokerageError):
    """Raised when an identity acts on another customer's records."""


class InvalidStateError(BrokerageError):
    """Raised when an order transition is attempted from a terminal state."""

    def __init__(self, order_id: int, status: str, action: str) -> None:
        super().__init__(f"Cannot {action} order {order_id} in status={status}")
        self.order_id = order_id
        self.status = status
        self.action = action


class InsufficientBalanceError(BrokerageError):
    """Base for reservation shortfalls."""

    def __init__(self, message: str, required: Decimal, available: Decimal) -> None:
        super().__init__(message)
        self.required = required
        self.available = available


class InsufficientFundsError(InsufficientBalanceError):
    """Raised when a BUY cannot reserve enough settlement currency."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient funds: required {required}, available {available}",
            required,
            available,
        )


class InsufficientHoldingsError(InsufficientBalanceError):
    """Raised when a SELL cannot reserve enough of the instrument."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient holdings: required {required}, available {available}",
            required,
            available,
        )


class AlreadyExistsError(BrokerageError):
    """Raised on duplicate provisioning or registration."""


class InvalidCredentialsError(BrokerageError):
    """Raised when a username/password pair or token does not check out."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class InvalidQuantityError(BrokerageError, ValueError):
    """Raised when an amount is not positive or does not fit the ledger's scale."""

    def __init__(self, field: str, value: Decimal, reason: str) -> None:
        super().__init__(f"Invalid {field} {value}: {reason}")
        self.field = field
        self.value = value


class ConcurrentInsertError(BrokerageError):
    """Raised when another transaction created the same row first; the unit of work is retried."""


class ConcurrencyConflictError(BrokerageError):
    """Raised when a unit of work keeps losing optimistic version checks."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Concurrent update conflict persisted after {attempts} attempts")
        self.attempts = attempts
