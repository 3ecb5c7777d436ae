"""In-app notification model."""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from quillboard.models import Base, BaseModel


class Notification(Base, BaseModel):
    """Notification shown in the recipient's admin panel inbox."""

    __tablename__ = "notifications"

    type: Mapped[str] = mapped_column(String(64), nullable=False)
    """Notification kind, e.g. "admin_status_request"."""

    notification_for_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Recipient."""

    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    """User whose action triggered the notification."""

    for_role: Mapped[str | None] = mapped_column(String(32), nullable=True)

    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    seen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type={self.type}, "
            f"for={self.notification_for_id}, seen={self.seen})>"
        )


__all__ = ["Notification"]
