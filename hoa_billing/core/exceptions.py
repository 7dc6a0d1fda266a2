"""Error taxonomy for billing and settlement operations."""


class BillingError(Exception):
    """Base class for every error raised by the billing engine."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BillingError):
    """Bad input shape or value. Rejected before any computation."""

    status_code = 400


class NotFoundError(BillingError):
    """Referenced statement, transaction, wallet or property is missing."""

    status_code = 404


class InsufficientFundsError(BillingError):
    """A debit would take a wallet balance below zero."""

    status_code = 400


class ConcurrencyConflictError(BillingError):
    """Stale read detected at commit. Retry with a fresh read."""

    status_code = 409


class InternalError(BillingError):
    """Unexpected storage failure or timeout."""

    status_code = 500
