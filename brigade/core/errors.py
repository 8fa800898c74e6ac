from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Error with a stable machine-readable ``error`` code.

    Rendered by the application exception handler as
    ``{"detail": message, "error": code, **extra}``.
    """

    status_code = 500
    error = "server_error"
    message = "Server error. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        error: str | None = None,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ) -> None:
        self.message = message or self.message
        self.error = error or self.error
        self.headers = headers
        self.extra = extra
        super().__init__(self.message)

    def to_content(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.error, **self.extra}


class ValidationFailed(ApiError):
    status_code = 400
    error = "validation_error"
    message = "Invalid request"


class Conflict(ApiError):
    status_code = 400
    error = "conflict"
    message = "Request conflicts with existing data"


class DuplicateEmail(Conflict):
    error = "duplicate_email"
    message = "An account with this email already exists"


class NotFound(ApiError):
    status_code = 404
    error = "not_found"
    message = "Not found"


class InvalidCredentials(ApiError):
    status_code = 401
    error = "invalid_credentials"
    message = "Invalid email or password"


class AccountNotActive(ApiError):
    status_code = 403
    error = "account_inactive"
    message = "Account is not active"

    def __init__(self, message: str | None = None, *, status: str, **kwargs: Any) -> None:
        super().__init__(message, status=status, **kwargs)
        self.status = status


class TenantSuspended(ApiError):
    status_code = 403
    error = "restaurant_suspended"
    message = "Restaurant access is currently suspended"


class PermissionDenied(ApiError):
    status_code = 403
    error = "insufficient_permissions"
    message = "Access denied. Insufficient permissions."


class RateLimited(ApiError):
    status_code = 429
    error = "rate_limit_exceeded"
    message = "Too many login attempts. Please try again later."

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        super().__init__(
            message,
            headers={"Retry-After": str(retry_after_seconds)},
            retry_after_seconds=retry_after_seconds,
        )
        self.retry_after_seconds = retry_after_seconds


class TokenInvalid(ApiError):
    status_code = 401
    error = "invalid_token"
    message = "Invalid token"

    def __init__(self, message: str | None = None, *, reason: str = "invalid", **kwargs: Any) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"}, **kwargs)
        # Logged server side only; the client always sees "Invalid token".
        self.reason = reason


class TokenExpired(TokenInvalid):
    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, reason="expired", **kwargs)
