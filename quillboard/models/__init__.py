"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from quillboard.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# Import models to register them with Base (after BaseModel is defined)
from quillboard.models.user import Role, User  # noqa: E402
from quillboard.models.status_change_request import (  # noqa: E402
    AdminStatusChangeRequest,
    RequestStatus,
    StatusChangeAction,
)
from quillboard.models.notification import Notification  # noqa: E402
from quillboard.models.audit_log import AuditLog  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "utcnow",
    "User",
    "Role",
    "AdminStatusChangeRequest",
    "RequestStatus",
    "StatusChangeAction",
    "Notification",
    "AuditLog",
]
