"""Application errors and response helpers."""

from typing import Any, Dict

from fastapi import status


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)

    def extra(self) -> Dict[str, Any]:
        """Additional fields for the error body."""
        return {}


class ValidationError(AppError):
    """Malformed input, rejected before anything is persisted."""

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, "invalid_request", status.HTTP_400_BAD_REQUEST)


class NotAuthenticatedError(AppError):
    """Missing, invalid or expired access token."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "not_authenticated", status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(AppError):
    """Caller lacks the role required for the operation."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied", status.HTTP_403_FORBIDDEN)


class UserNotFoundError(AppError):
    """Referenced user does not exist."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found", status.HTTP_404_NOT_FOUND)


class RequestNotFoundError(AppError):
    """Status-change request missing, or no longer pending.

    Both causes share one message so callers cannot probe which applies.
    """

    def __init__(self, message: str = "Request not found or already processed"):
        super().__init__(message, "request_not_found", status.HTTP_404_NOT_FOUND)


class DuplicateRequestError(AppError):
    """Same requester already has a pending request for this target and action."""

    def __init__(self, message: str = "A similar pending request already exists."):
        super().__init__(message, "duplicate_request", status.HTTP_409_CONFLICT)


class SelfDemotionError(AppError):
    """Super-admin tried to remove their own admin flag."""

    def __init__(self, message: str = "You cannot demote yourself."):
        super().__init__(message, "self_demotion", status.HTTP_400_BAD_REQUEST)


class RateLimitedError(AppError):
    """Caller filed status-change requests too quickly."""

    def __init__(self, message: str = "Too many status change requests, please wait."):
        super().__init__(message, "rate_limited", status.HTTP_429_TOO_MANY_REQUESTS)


class NotificationFailedError(AppError):
    """Request was persisted but super-admins could not be notified."""

    def __init__(
        self,
        request_id: int,
        message: str = "Request created, but failed to notify super admins.",
    ):
        self.request_id = request_id
        super().__init__(message, "notification_failed", status.HTTP_502_BAD_GATEWAY)

    def extra(self) -> Dict[str, Any]:
        return {"request_id": self.request_id}


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
            **error.extra(),
        }
    }


__all__ = [
    "AppError",
    "ValidationError",
    "NotAuthenticatedError",
    "PermissionDeniedError",
    "UserNotFoundError",
    "RequestNotFoundError",
    "DuplicateRequestError",
    "SelfDemotionError",
    "RateLimitedError",
    "NotificationFailedError",
    "error_response",
]
