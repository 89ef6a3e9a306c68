"""Exception classes for the Earth Care client."""


class ApiError(Exception):
    """Base exception for every failed API call."""

    def __init__(self, message: str, status_code: int = None, response=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class TransportError(ApiError):
    """Raised when the request never got an HTTP response."""
    pass


class ValidationError(ApiError):
    """Raised when request validation fails (400/422)."""
    pass


class AuthenticationError(ApiError):
    """Raised when the caller is not signed in (401)."""
    pass


class PermissionDenied(ApiError):
    """Raised when role or plan is insufficient (403)."""
    pass


class NotFoundError(ApiError):
    """Raised when the resource is missing or hidden from the caller (404)."""
    pass


class ServerError(ApiError):
    """Raised when the server returns a 5xx error."""
    pass


def is_retryable(error: Exception) -> bool:
    """Only transport failures and 5xx responses are worth a second attempt."""
    return isinstance(error, (TransportError, ServerError))
