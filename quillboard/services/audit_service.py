"""Audit trail for admin-flag changes and status-change request events."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from quillboard.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

USER_ENTITY = "user"
REQUEST_ENTITY = "status_change_request"


class AuditService:
    """Writes audit entries into the caller's transaction.

    Nothing here commits: an entry only persists if the change it describes does.
    """

    @staticmethod
    def log(
        db: Session,
        entity_type: str,
        entity_id: int,
        action: str,
        actor_id: int | None = None,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            changes=changes,
        )
        db.add(entry)
        logger.debug("Audit %s %s#%d by %s", action, entity_type, entity_id, actor_id)
        return entry

    @classmethod
    def user_flag_changed(
        cls, db: Session, user_id: int, action: str, actor_id: int, is_admin: bool
    ) -> AuditLog:
        """Record a direct (non-request) change to a user's admin flag."""
        return cls.log(db, USER_ENTITY, user_id, action, actor_id, {"is_admin": is_admin})

    @classmethod
    def request_event(
        cls,
        db: Session,
        request_id: int,
        action: str,
        actor_id: int,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Record approve/reject/delete of a status-change request."""
        return cls.log(db, REQUEST_ENTITY, request_id, action, actor_id, changes)

    @staticmethod
    def history(db: Session, entity_type: str, entity_id: int) -> list[AuditLog]:
        """Entries for one entity, oldest first."""
        return list(
            db.execute(
                select(AuditLog)
                .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
                .order_by(AuditLog.id)
            ).scalars()
        )


__all__ = ["AuditService", "USER_ENTITY", "REQUEST_ENTITY"]
