"""Admin status-change workflow: submission, approval, rejection and cleanup."""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quillboard.config import settings
from quillboard.errors import (
    DuplicateRequestError,
    NotificationFailedError,
    PermissionDeniedError,
    RateLimitedError,
    RequestNotFoundError,
    SelfDemotionError,
    ValidationError,
)
from quillboard.models import utcnow
from quillboard.models.status_change_request import (
    AdminStatusChangeRequest,
    RequestStatus,
    StatusChangeAction,
)
from quillboard.models.user import User
from quillboard.services.audit_service import AuditService
from quillboard.services.auth_service import Caller
from quillboard.services.email_service import EmailError, EmailNotConfiguredError
from quillboard.services.notification_service import NotificationService
from quillboard.services.rate_limiter import RateLimiter, RateLimiterProtocol
from quillboard.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """How a status-change call was handled when it did not fail."""

    APPLIED = "applied"
    PENDING = "pending"


@dataclass
class StatusChangeResult:
    outcome: Outcome
    user: User | None = None
    request: AdminStatusChangeRequest | None = None


def parse_action(action: str | StatusChangeAction | None) -> StatusChangeAction:
    """Coerce user input to a StatusChangeAction.

    Raises:
        ValidationError: Missing or unknown action
    """
    if isinstance(action, StatusChangeAction):
        return action
    try:
        return StatusChangeAction(str(action).strip().lower())
    except ValueError as e:
        raise ValidationError("action must be 'promote' or 'demote'") from e


# Process-wide default so the window spans requests; tests inject their own
default_rate_limiter = RateLimiter(window_seconds=settings.status_change_rate_limit_seconds)


class StatusChangeService:
    """Service for the admin promotion/demotion approval workflow."""

    def __init__(
        self,
        db_session: Session,
        directory: UserDirectory | None = None,
        notifier: NotificationService | None = None,
        rate_limiter: RateLimiterProtocol | None = None,
    ):
        self.db = db_session
        self.directory = directory or UserDirectory(db_session)
        self.notifier = notifier or NotificationService(db_session)
        self.rate_limiter = rate_limiter or default_rate_limiter

    @staticmethod
    def _require_super_admin(caller: Caller) -> None:
        if not caller.is_super_admin:
            logger.warning("Non-super-admin %d attempted a super-admin operation", caller.id)
            raise PermissionDeniedError("Super admin privileges required.")

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def request_status_change(
        self,
        caller: Caller,
        target_user_id: int | None,
        action: str | StatusChangeAction | None,
        reason: str | None = None,
    ) -> StatusChangeResult:
        """Promote or demote ``target_user_id``.

        Super-admins change the flag immediately. Anyone else gets a pending
        request that a super-admin must approve; the directory is not touched.

        Returns:
            StatusChangeResult with outcome APPLIED (user set) or PENDING (request set)

        Raises:
            ValidationError: Bad action or missing target
            SelfDemotionError: Super-admin demoting themself
            UserNotFoundError: Target does not exist
            RateLimitedError: Caller submitted too recently
            DuplicateRequestError: Identical request already pending
            NotificationFailedError: Request saved but super-admins not notified
        """
        action = parse_action(action)
        if target_user_id is None:
            raise ValidationError("target_user_id is required")

        if caller.is_super_admin:
            return self._apply_directly(caller, target_user_id, action)
        return self._file_request(caller, target_user_id, action, reason or "")

    def _apply_directly(
        self, caller: Caller, target_user_id: int, action: StatusChangeAction
    ) -> StatusChangeResult:
        if target_user_id == caller.id and action is StatusChangeAction.DEMOTE:
            logger.warning("Super admin %d attempted self-demotion", caller.id)
            raise SelfDemotionError()

        try:
            user = self.directory.set_admin_flag(target_user_id, action.admin_flag)
            AuditService.user_flag_changed(
                self.db, target_user_id, action.value, caller.id, action.admin_flag
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Super admin %d %sd user %d directly", caller.id, action.value, user.id)
        return StatusChangeResult(outcome=Outcome.APPLIED, user=user)

    def _find_pending(
        self, requester_id: int, target_user_id: int, action: StatusChangeAction
    ) -> AdminStatusChangeRequest | None:
        return self.db.execute(
            select(AdminStatusChangeRequest).where(
                AdminStatusChangeRequest.requesting_user_id == requester_id,
                AdminStatusChangeRequest.target_user_id == target_user_id,
                AdminStatusChangeRequest.action == action,
                AdminStatusChangeRequest.status == RequestStatus.PENDING,
            )
        ).scalar_one_or_none()

    def _file_request(
        self, caller: Caller, target_user_id: int, action: StatusChangeAction, reason: str
    ) -> StatusChangeResult:
        requester = self.directory.get_or_raise(caller.id)
        target = self.directory.get_or_raise(target_user_id)

        if self._find_pending(caller.id, target_user_id, action):
            logger.warning(
                "Duplicate %s request from user %d for user %d", action.value, caller.id, target.id
            )
            raise DuplicateRequestError()

        # Only submissions that are about to be stored count against the window
        if not self.rate_limiter.check(f"status-change:{caller.id}"):
            raise RateLimitedError()

        request = AdminStatusChangeRequest(
            requesting_user_id=caller.id,
            target_user_id=target_user_id,
            action=action,
            reason=reason,
            status=RequestStatus.PENDING,
        )
        try:
            self.db.add(request)
            self.db.commit()
        except IntegrityError as e:
            # Lost the race against a concurrent identical submission
            self.db.rollback()
            logger.warning("Pending-request uniqueness violated for user %d: %s", caller.id, e)
            raise DuplicateRequestError() from e
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(request)
        logger.info(
            "Status change request %d created: user %d asks to %s user %d",
            request.id,
            caller.id,
            action.value,
            target_user_id,
        )

        self._notify_super_admins(request, requester, target)
        return StatusChangeResult(outcome=Outcome.PENDING, request=request)

    def _notify_super_admins(
        self, request: AdminStatusChangeRequest, requester: User, target: User
    ) -> None:
        try:
            super_admins = self.directory.find_super_admins()
            sent_to = self.notifier.notify_status_change_request(
                request, requester, target, super_admins
            )
        except EmailNotConfiguredError as e:
            self._record_note(request, str(e))
            raise NotificationFailedError(
                request.id,
                "Request created, but email notification could not be sent "
                "due to missing email configuration.",
            ) from e
        except EmailError as e:
            self._record_note(
                request, f"Failed to send notification email to super admins. Error: {e}"
            )
            raise NotificationFailedError(request.id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("In-app notification failed for request %d: %s", request.id, e)
            self._record_note(request, f"Failed to create in-app notifications. Error: {e}")
            raise NotificationFailedError(request.id) from e

        if not sent_to:
            logger.warning("No super admin email addresses for request %d", request.id)
            self._record_note(request, "No valid super admin emails found; email not sent.")

    def _record_note(self, request: AdminStatusChangeRequest, note: str) -> None:
        self.db.execute(
            update(AdminStatusChangeRequest)
            .where(AdminStatusChangeRequest.id == request.id)
            .values(notes=note)
        )
        self.db.commit()
        self.db.refresh(request)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _claim_pending(
        self, caller: Caller, request_id: int, new_status: RequestStatus, notes: str | None = None
    ) -> None:
        """Move a pending request to ``new_status`` in the current transaction.

        The WHERE on status makes concurrent resolutions race safely: only one
        UPDATE can match.
        """
        values = {
            "status": new_status,
            "reviewed_by_id": caller.id,
            "reviewed_at": utcnow(),
        }
        if notes is not None:
            values["notes"] = notes
        result = self.db.execute(
            update(AdminStatusChangeRequest)
            .where(
                AdminStatusChangeRequest.id == request_id,
                AdminStatusChangeRequest.status == RequestStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise RequestNotFoundError()

    def approve_request(self, caller: Caller, request_id: int) -> AdminStatusChangeRequest:
        """Approve a pending request and apply the admin flag to its target.

        The status transition and the directory change commit together; if the
        directory change fails the request stays pending.

        Raises:
            PermissionDeniedError: Caller is not a super-admin
            RequestNotFoundError: Missing or already processed
            UserNotFoundError: Target user no longer exists
        """
        self._require_super_admin(caller)

        request = self.db.get(AdminStatusChangeRequest, request_id)
        if not request or not request.is_pending:
            raise RequestNotFoundError()

        try:
            self._claim_pending(caller, request_id, RequestStatus.APPROVED)
            self.directory.set_admin_flag(request.target_user_id, request.action.admin_flag)
            AuditService.request_event(
                self.db,
                request_id,
                "approve",
                caller.id,
                changes={
                    "target_user_id": request.target_user_id,
                    "is_admin": request.action.admin_flag,
                },
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        logger.info("Request %d approved by super admin %d", request_id, caller.id)
        return request

    def reject_request(
        self, caller: Caller, request_id: int, notes: str | None = None
    ) -> AdminStatusChangeRequest:
        """Reject a pending request; the target user is not changed.

        Raises:
            PermissionDeniedError: Caller is not a super-admin
            RequestNotFoundError: Missing or already processed
        """
        self._require_super_admin(caller)

        request = self.db.get(AdminStatusChangeRequest, request_id)
        if not request or not request.is_pending:
            raise RequestNotFoundError()

        try:
            self._claim_pending(caller, request_id, RequestStatus.REJECTED, notes=notes or "")
            AuditService.request_event(
                self.db, request_id, "reject", caller.id, {"notes": notes or ""}
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        logger.info("Request %d rejected by super admin %d", request_id, caller.id)
        return request

    # ------------------------------------------------------------------
    # Views and cleanup
    # ------------------------------------------------------------------

    def list_pending_requests(self, caller: Caller) -> list[AdminStatusChangeRequest]:
        """All pending requests, oldest first (super-admin only)."""
        self._require_super_admin(caller)
        return list(
            self.db.execute(
                select(AdminStatusChangeRequest)
                .where(AdminStatusChangeRequest.status == RequestStatus.PENDING)
                .order_by(AdminStatusChangeRequest.created_at, AdminStatusChangeRequest.id)
            ).scalars()
        )

    def list_my_requests(self, caller: Caller) -> list[AdminStatusChangeRequest]:
        """Every request the caller filed, newest first."""
        return list(
            self.db.execute(
                select(AdminStatusChangeRequest)
                .where(AdminStatusChangeRequest.requesting_user_id == caller.id)
                .order_by(
                    AdminStatusChangeRequest.created_at.desc(),
                    AdminStatusChangeRequest.id.desc(),
                )
            ).scalars()
        )

    def delete_request(self, caller: Caller, request_id: int) -> None:
        """Delete a request in any status. Allowed for its requester or a super-admin.

        Raises:
            RequestNotFoundError: No such request
            PermissionDeniedError: Caller is neither requester nor super-admin
        """
        request = self.db.get(AdminStatusChangeRequest, request_id)
        if not request:
            raise RequestNotFoundError("Request not found")

        if request.requesting_user_id != caller.id and not caller.is_super_admin:
            logger.warning("User %d denied deletion of request %d", caller.id, request_id)
            raise PermissionDeniedError("You do not have permission to delete this request")

        try:
            AuditService.request_event(
                self.db, request_id, "delete", caller.id, {"status": request.status.value}
            )
            self.db.delete(request)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Request %d deleted by user %d", request_id, caller.id)


__all__ = [
    "StatusChangeService",
    "StatusChangeResult",
    "Outcome",
    "parse_action",
    "default_rate_limiter",
]
