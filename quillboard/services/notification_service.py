"""Notification service: in-app inbox entries and outbound email."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from quillboard.models.notification import Notification
from quillboard.models.status_change_request import AdminStatusChangeRequest, StatusChangeAction
from quillboard.models.user import Role, User
from quillboard.services.email_service import EmailService

logger = logging.getLogger(__name__)

ADMIN_STATUS_REQUEST = "admin_status_request"
STATUS_REQUEST_SUBJECT = "Admin Status Change Request (Pending Approval)"


def _describe(user: User) -> str:
    if user.email:
        return f"{user.fullname} ({user.email})"
    return user.fullname


def render_status_request_email(
    requester: User, target: User, action: StatusChangeAction, reason: str = ""
) -> str:
    """Plain-text body summarizing a pending status-change request."""
    if action is StatusChangeAction.PROMOTE:
        change = f"promote user {_describe(target)} to admin"
    else:
        change = f"demote user {_describe(target)} from admin"
    body = f"User {_describe(requester)} requested to {change}.\n"
    if reason:
        body += f"\nReason: {reason}\n"
    body += "\nPlease review and take action in the admin panel."
    return body


class NotificationService:
    """Service for notifying users about admin workflow events."""

    def __init__(self, db_session: Session, email_service: EmailService | None = None):
        self.db = db_session
        self.email_service = email_service or EmailService()

    def create_in_app_notification(
        self,
        for_user_id: int,
        payload: dict[str, Any],
        notification_type: str = ADMIN_STATUS_REQUEST,
        actor_id: int | None = None,
        for_role: str | None = None,
    ) -> Notification:
        """Add an inbox entry for ``for_user_id`` (not committed here)."""
        notification = Notification(
            type=notification_type,
            notification_for_id=for_user_id,
            user_id=actor_id,
            for_role=for_role,
            payload=payload,
        )
        self.db.add(notification)
        return notification

    def send_email(self, to_addresses: list[str], subject: str, body: str) -> None:
        """Send one email to all addresses.

        Raises:
            EmailError: Delivery failed or SMTP is not configured
        """
        self.email_service.send_email(to_addresses, subject, body)

    def notify_status_change_request(
        self,
        request: AdminStatusChangeRequest,
        requester: User,
        target: User,
        super_admins: list[User],
    ) -> list[str]:
        """Tell every super-admin about a new pending request.

        In-app notifications are committed before the email goes out, so an
        SMTP failure does not lose them.

        Returns:
            Addresses the email was sent to (empty when no super-admin has one)

        Raises:
            EmailError: The email could not be sent
        """
        payload = {
            "request_id": request.id,
            "action": request.action.value,
            "target_user_id": target.id,
            "target_fullname": target.fullname,
        }
        for super_admin in super_admins:
            self.create_in_app_notification(
                for_user_id=super_admin.id,
                payload=payload,
                actor_id=requester.id,
                for_role=Role.SUPER_ADMIN.value,
            )
        self.db.commit()
        logger.debug(
            "Created %d in-app notification(s) for request %d", len(super_admins), request.id
        )

        addresses = [admin.email for admin in super_admins if admin.email]
        if not addresses:
            return []

        self.send_email(
            addresses,
            STATUS_REQUEST_SUBJECT,
            render_status_request_email(requester, target, request.action, request.reason),
        )
        return addresses


__all__ = [
    "NotificationService",
    "render_status_request_email",
    "ADMIN_STATUS_REQUEST",
    "STATUS_REQUEST_SUBJECT",
]
