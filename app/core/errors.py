"""Typed engine errors.

Every failure a billing command can report is an ``EngineError`` subclass
carrying a machine-readable ``code`` and the HTTP status the API layer maps
it to. Business-rule errors are returned to the caller as-is; transient
infrastructure errors (``StoreUnavailable``, ``Timeout``) may be retried at
the call site.
"""

from fastapi import status


class EngineError(Exception):
    """Base billing engine error."""

    code = "ENGINE_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidQuantity(EngineError):
    """A metered quantity, charge or amount is negative or cannot be stored exactly."""

    code = "INVALID_QUANTITY"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, field: str, value, reason: str = "must not be negative"):
        self.field = field
        self.value = value
        super().__init__(f"{field} {reason} (got {value})")


class RateNotFound(EngineError):
    """A rate category has no bill type and strict pricing is enabled."""

    code = "RATE_NOT_FOUND"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No unit price configured for '{category}'")


class NotFound(EngineError):
    code = "RESOURCE_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    resource = "Resource"

    def __init__(self, resource_id):
        self.resource_id = resource_id
        super().__init__(f"{self.resource} {resource_id} does not exist")


class StayNotFound(NotFound):
    code = "STAY_NOT_FOUND"
    resource = "Stay"


class PaymentNotFound(NotFound):
    code = "PAYMENT_NOT_FOUND"
    resource = "Payment"


class SlipNotFound(NotFound):
    code = "SLIP_NOT_FOUND"
    resource = "Payment slip"


class IncomeNotFound(NotFound):
    code = "INCOME_NOT_FOUND"
    resource = "Income"


class ExpenseNotFound(NotFound):
    code = "EXPENSE_NOT_FOUND"
    resource = "Expense"


class IllegalTransition(EngineError):
    """Requested status is not reachable from the current status."""

    code = "ILLEGAL_TRANSITION"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move payment from '{current.value}' to '{requested.value}'"
        )


class Conflict(EngineError):
    """Duplicate billing period, change to a settled record, or a lost write race."""

    code = "CONFLICT"
    http_status = status.HTTP_409_CONFLICT


class ArtifactUnavailable(EngineError):
    """A slip artifact could not be confirmed. Only used to exclude stale slips."""

    code = "ARTIFACT_UNAVAILABLE"
    http_status = status.HTTP_404_NOT_FOUND


class StoreUnavailable(EngineError):
    code = "STORE_UNAVAILABLE"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class Timeout(EngineError):
    code = "TIMEOUT"
    http_status = status.HTTP_504_GATEWAY_TIMEOUT
