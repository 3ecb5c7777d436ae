"""Direct admin operations on the user directory (listing, bulk actions)."""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quillboard.errors import AppError, PermissionDeniedError, ValidationError
from quillboard.models.user import User
from quillboard.services.audit_service import USER_ENTITY, AuditService
from quillboard.services.auth_service import Caller
from quillboard.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

BULK_ACTIONS = {"promote": "promoted", "demote": "demoted", "delete": "deleted"}


@dataclass
class BulkActionResult:
    """Per-id outcome of a bulk action; one failure never aborts the rest."""

    success: list[dict[str, Any]] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)


class AdminUserService:
    """Service for admin-panel user management."""

    def __init__(self, db_session: Session, directory: UserDirectory | None = None):
        self.db = db_session
        self.directory = directory or UserDirectory(db_session)

    def list_users(
        self, caller: Caller, page: int = 1, limit: int = 10
    ) -> tuple[list[User], int]:
        """Page through users for the admin panel (admins and super-admins)."""
        if not caller.is_admin:
            raise PermissionDeniedError("Admin access required")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        return self.directory.list_users(page=page, limit=limit)

    def bulk_user_action(
        self, caller: Caller, user_ids: list[int], action: str
    ) -> BulkActionResult:
        """Apply ``action`` to each user id independently.

        Bypasses the request/approval workflow; super-admins act immediately.
        Each id is committed (or rolled back) on its own.

        Raises:
            PermissionDeniedError: Caller is not a super-admin
            ValidationError: user_ids is not a list or action is empty
        """
        if not isinstance(user_ids, list) or not action:
            raise ValidationError("user_ids (array) and action are required.")
        if not caller.is_super_admin:
            raise PermissionDeniedError("Only super admins can perform bulk actions.")

        result = BulkActionResult()
        for user_id in user_ids:
            if user_id == caller.id and action == "demote":
                result.failed.append({"user_id": user_id, "reason": "Cannot demote yourself."})
                continue
            if action not in BULK_ACTIONS:
                result.failed.append({"user_id": user_id, "reason": "Unknown action"})
                continue

            try:
                self._apply_one(caller, user_id, action)
                self.db.commit()
            except (AppError, SQLAlchemyError) as e:
                self.db.rollback()
                reason = e.message if isinstance(e, AppError) else str(e)
                logger.warning("Bulk %s failed for user %s: %s", action, user_id, reason)
                result.failed.append({"user_id": user_id, "reason": reason})
                continue

            result.success.append({"user_id": user_id, "action": BULK_ACTIONS[action]})

        logger.info(
            "Bulk %s by super admin %d: %d succeeded, %d failed",
            action,
            caller.id,
            len(result.success),
            len(result.failed),
        )
        return result

    def _apply_one(self, caller: Caller, user_id: int, action: str) -> None:
        if action == "delete":
            self.directory.delete_user(user_id)
            AuditService.log(self.db, USER_ENTITY, user_id, "bulk_delete", caller.id)
            return

        is_admin = action == "promote"
        self.directory.set_admin_flag(user_id, is_admin)
        AuditService.user_flag_changed(self.db, user_id, f"bulk_{action}", caller.id, is_admin)


__all__ = ["AdminUserService", "BulkActionResult", "BULK_ACTIONS"]
