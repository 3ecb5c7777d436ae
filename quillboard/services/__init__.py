"""Service layer exports."""

from quillboard.services.admin_user_service import AdminUserService, BulkActionResult
from quillboard.services.audit_service import AuditService
from quillboard.services.auth_service import Caller, create_access_token, resolve_caller
from quillboard.services.email_service import EmailService
from quillboard.services.notification_service import NotificationService
from quillboard.services.rate_limiter import RateLimiter
from quillboard.services.status_change_service import (
    Outcome,
    StatusChangeResult,
    StatusChangeService,
)
from quillboard.services.user_directory import UserDirectory

__all__ = [
    "AdminUserService",
    "AuditService",
    "BulkActionResult",
    "Caller",
    "EmailService",
    "NotificationService",
    "Outcome",
    "RateLimiter",
    "StatusChangeResult",
    "StatusChangeService",
    "UserDirectory",
    "create_access_token",
    "resolve_caller",
]
