"""Custom exceptions for the register core."""


class RegisterError(Exception):
    """Base exception for all register errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        rv['error'] = type(self).__name__
        return rv


class ValidationError(RegisterError):
    """Raised for bad input (quantity <= 0, empty product code)."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class NotFoundError(RegisterError):
    """Raised when a product code or transaction id is unknown."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InvalidStateError(RegisterError):
    """Raised when a transition is not allowed from the current transaction status."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class InsufficientPaymentError(RegisterError):
    """Raised when the tendered amount does not cover the transaction total."""
    def __init__(self, total, tendered):
        message = f"Insufficient payment: total {total:.2f}, tendered {tendered:.2f}"
        super().__init__(message, 402, {'total': str(total), 'tendered': str(tendered)})
        self.total = total
        self.tendered = tendered


class PersistenceError(RegisterError):
    """Raised when the transaction store is unreachable or rejects a write."""
    def __init__(self, message="Storage unavailable", payload=None):
        super().__init__(message, 503, payload)


class DiscountUnavailableError(RegisterError):
    """Discount API call failed. Always absorbed into a FALLBACK result."""
    def __init__(self, message):
        super().__init__(message, 502)


class JournalUnavailableError(RegisterError):
    """Journal collector unreachable. Logged, never propagated."""
    def __init__(self, message):
        super().__init__(message, 502)
