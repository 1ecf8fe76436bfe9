# storefront/errors.py
from enum import Enum
from typing import Any, Dict, List, Optional

class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CODE = "INVALID_CODE"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    FINALIZE_FAILED = "FINALIZE_FAILED"

class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

class ValidationError(DomainError):
    """Raised when buyer or product fields are malformed or missing."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []

class NotFoundError(DomainError):
    """Raised when a product, purchase or other record does not resolve."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection} record not found")
        self.collection = collection
        self.record_id = record_id

class InvalidCodeError(DomainError):
    """Raised when a discount code does not exist."""

    code = ErrorCode.INVALID_CODE

    def __init__(self, discount_code: str) -> None:
        super().__init__("Discount code is not valid")
        self.discount_code = discount_code

class CapacityExceededError(DomainError):
    """Raised when an event has no seats left."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, product_id: str, capacity: int) -> None:
        super().__init__("Event is full")
        self.product_id = product_id
        self.capacity = capacity

class InvalidTransitionError(DomainError):
    """Raised when a purchase is finalized while not pending."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, purchase_id: str, current: str, requested: str) -> None:
        super().__init__(f"Cannot transition purchase from {current} to {requested}")
        self.purchase_id = purchase_id
        self.current = current
        self.requested = requested

class StoreUnavailableError(DomainError):
    """Raised when the record store or blob store cannot be reached."""

    code = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation

class AuthenticationRequiredError(DomainError):
    """Raised when an admin operation runs without an authenticated context."""

    code = ErrorCode.AUTHENTICATION_REQUIRED

    def __init__(self) -> None:
        super().__init__("Authentication required")

class CheckoutFinalizeError(DomainError):
    """Raised when a pending purchase could not be moved to its terminal state.

    The pending purchase is kept for manual reconciliation.
    """

    code = ErrorCode.FINALIZE_FAILED

    def __init__(self, purchase_id: str) -> None:
        super().__init__("Payment was processed but the purchase could not be updated")
        self.purchase_id = purchase_id
