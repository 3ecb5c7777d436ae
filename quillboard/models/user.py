"""User ORM model with admin role flags."""

from enum import Enum as PyEnum

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quillboard.models import Base, BaseModel


class Role(str, PyEnum):
    """Effective privilege level, derived once from the stored flags."""

    REGULAR = "regular"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class User(Base, BaseModel):
    """
    Blog platform account.

    Privilege is stored as two independent flags:
    - is_admin: can use the admin panel and file status-change requests
    - is_super_admin: can change admin flags directly and resolve requests

    A super-admin is treated as an admin regardless of is_admin.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, comment="Public handle"
    )
    fullname: Mapped[str] = mapped_column(String(255), nullable=False, comment="Display name")
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Contact address for notifications"
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Admin panel access"
    )
    is_super_admin: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Can change admin flags directly"
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, comment="Email verified; unverified users cannot act"
    )

    __table_args__ = (
        Index("idx_users_is_super_admin", "is_super_admin"),
    )

    @property
    def role(self) -> Role:
        if self.is_super_admin:
            return Role.SUPER_ADMIN
        if self.is_admin:
            return Role.ADMIN
        return Role.REGULAR

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role.value})>"


__all__ = ["User", "Role"]
