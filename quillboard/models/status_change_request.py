"""AdminStatusChangeRequest ORM model: audit trail of promote/demote asks."""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quillboard.models import Base, BaseModel


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class StatusChangeAction(str, PyEnum):
    """Requested change to the target's admin flag."""

    PROMOTE = "promote"
    DEMOTE = "demote"

    @property
    def admin_flag(self) -> bool:
        return self is StatusChangeAction.PROMOTE


class RequestStatus(str, PyEnum):
    """Enumeration for request status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdminStatusChangeRequest(Base, BaseModel):
    """
    A non-super-admin's ask to change another user's admin flag.

    Rows are the audit record of the approval workflow. The target's flag is
    only changed when a super-admin approves; rejecting leaves it untouched.

    Timestamps:
    - created_at: when the request was filed
    - reviewed_at: when a super-admin resolved it (null while pending)
    """

    __tablename__ = "admin_status_change_requests"

    requesting_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[StatusChangeAction] = mapped_column(
        Enum(StatusChangeAction, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, native_enum=False, values_callable=_enum_values, length=16),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
        comment="Status: pending/approved/rejected",
    )

    # Review fields (null until a super-admin resolves the request)
    reviewed_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Rejection notes or notification failure cause"
    )

    requesting_user = relationship("User", foreign_keys=[requesting_user_id], lazy="joined")
    target_user = relationship("User", foreign_keys=[target_user_id], lazy="joined")
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id], lazy="joined")

    # At most one pending row per (requester, target, action)
    __table_args__ = (
        Index(
            "uq_status_change_pending",
            "requesting_user_id",
            "target_user_id",
            "action",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
        Index("idx_status_change_requester_status", "requesting_user_id", "status"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"<AdminStatusChangeRequest(id={self.id}, requester={self.requesting_user_id}, "
            f"target={self.target_user_id}, action={self.action.value}, "
            f"status={self.status.value})>"
        )


__all__ = ["AdminStatusChangeRequest", "RequestStatus", "StatusChangeAction"]
