"""Custom exceptions for the linq POS backend."""


class LinqError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BadRequestError(LinqError):
    """Raised when a request body or parameter cannot be decoded."""
    def __init__(self, message="Bad request", payload=None):
        super().__init__(message, 400, payload)


class NotFoundError(LinqError):
    """Exception raised when a resource is not found.

    Not-found is an expected outcome, callers branch on it rather than
    treating it as a fault.
    """
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class CacheKeyNotFound(NotFoundError):
    """Raised by the cache when a key holds no value."""
    def __init__(self, key):
        super().__init__(f"cache key not found: {key}")
        self.key = key


class InfrastructureError(LinqError):
    """Connection, serialization or query failure in a backing store."""
    def __init__(self, message="Storage failure", status_code=500, payload=None):
        super().__init__(message, status_code, payload)


class CacheError(InfrastructureError):
    """Raised for any cache failure other than a missing key."""


class CacheConflictError(CacheError):
    """Raised when a compare-and-swap keeps losing to concurrent writers."""
    def __init__(self, key, attempts):
        super().__init__(f"concurrent update on {key} after {attempts} attempts", status_code=409)
        self.key = key
        self.attempts = attempts
