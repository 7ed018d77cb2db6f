"""Custom exceptions for the Zura API client."""

from typing import Any, Optional, Sequence


class ZuraError(Exception):
    """Base exception for all Zura client errors.

    Every error carries a human-readable message, the HTTP status (if a
    response was received) and the raw backend payload (if any).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class TransportError(ZuraError):
    """Raised when no response was received (network failure, timeout)."""

    def __init__(self, message: str = "Network request failed") -> None:
        super().__init__(message)


class AuthenticationError(ZuraError):
    """Raised when authentication fails (401)."""

    def __init__(self, message: str = "Authentication failed", payload: Any = None) -> None:
        super().__init__(message, status_code=401, payload=payload)


class RouteMismatchError(ZuraError):
    """Raised when no candidate route for an operation exists on the backend."""

    def __init__(
        self,
        message: str = "No matching backend route",
        candidates: Sequence[str] = (),
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, payload=payload)
        self.candidates = tuple(candidates)


class ValidationError(ZuraError):
    """Raised before dispatch when required request fields are missing."""

    def __init__(self, message: str = "Validation error") -> None:
        super().__init__(message)


class ApplicationError(ZuraError):
    """Raised for any non-2xx response other than 401."""

    def __init__(self, message: str = "Request failed", status_code: Optional[int] = 400, payload: Any = None) -> None:
        super().__init__(message, status_code=status_code, payload=payload)


class AuthorizationError(ApplicationError):
    """Raised when authorization is denied (403)."""

    def __init__(self, message: str = "Authorization denied", payload: Any = None) -> None:
        super().__init__(message, status_code=403, payload=payload)


class NotFoundError(ApplicationError):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str = "Resource not found", payload: Any = None) -> None:
        super().__init__(message, status_code=404, payload=payload)


class MethodNotAllowedError(ApplicationError):
    """Raised when the backend rejects the HTTP verb (405)."""

    def __init__(self, message: str = "Method not allowed", payload: Any = None) -> None:
        super().__init__(message, status_code=405, payload=payload)


class UnprocessableEntityError(ApplicationError):
    """Raised when the backend rejects the request body (422)."""

    def __init__(self, message: str = "Unprocessable entity", payload: Any = None) -> None:
        super().__init__(message, status_code=422, payload=payload)


class RateLimitError(ApplicationError):
    """Raised when rate limit is exceeded (429)."""

    def __init__(self, message: str = "Rate limit exceeded", payload: Any = None) -> None:
        super().__init__(message, status_code=429, payload=payload)


class ServerError(ApplicationError):
    """Raised when server returns 5xx error."""

    def __init__(self, message: str = "Server error", status_code: int = 500, payload: Any = None) -> None:
        super().__init__(message, status_code=status_code, payload=payload)


ROUTE_MISMATCH_STATUSES = frozenset({404, 405})


def is_route_mismatch(error: BaseException) -> bool:
    """True when ``error`` means the verb or path is not mounted on the backend."""
    return isinstance(error, ApplicationError) and error.status_code in ROUTE_MISMATCH_STATUSES
