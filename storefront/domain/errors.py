# storefront/domain/errors.py
from typing import Dict, Iterable, Optional


class StorefrontError(Exception):
    """Base class for every failure the storefront surfaces to a caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Bad input shape. Raised before any write is attempted."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        incomplete_categories: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.field = field
        # category id -> human readable reason
        self.incomplete_categories = incomplete_categories or {}


class NotFoundError(StorefrontError):
    pass


class InvalidCodeError(NotFoundError):
    pass


class InsufficientStockError(StorefrontError):
    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class AuthRequiredError(StorefrontError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class RemoteOperationError(StorefrontError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ExpiredError(StorefrontError):
    pass


class InactiveError(StorefrontError):
    pass


class NothingAvailableError(StorefrontError):
    def __init__(self, message: str = "None of the saved items are available anymore",
                 skipped: Iterable[str] = ()):
        super().__init__(message)
        self.skipped = list(skipped)


class PaymentError(StorefrontError):
    pass
