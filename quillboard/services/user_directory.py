"""User directory: lookups and admin-flag mutations."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from quillboard.errors import UserNotFoundError
from quillboard.models.user import User

logger = logging.getLogger(__name__)


class UserDirectory:
    """Service for user-related operations.

    Methods never commit; the calling workflow owns the transaction.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_or_raise(self, user_id: int) -> User:
        user = self.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    def set_admin_flag(self, user_id: int, is_admin: bool) -> User:
        """Set ``is_admin`` on a user.

        Raises:
            UserNotFoundError: No user with this id
        """
        result = self.db.execute(
            update(User).where(User.id == user_id).values(is_admin=is_admin)
        )
        if result.rowcount == 0:
            raise UserNotFoundError()

        user = self.db.get(User, user_id)
        self.db.refresh(user)
        logger.info("Set is_admin=%s on user %d", is_admin, user_id)
        return user

    def find_super_admins(self) -> list[User]:
        return list(
            self.db.execute(
                select(User).where(User.is_super_admin.is_(True)).order_by(User.id)
            ).scalars()
        )

    def delete_user(self, user_id: int) -> None:
        user = self.get_or_raise(user_id)
        self.db.delete(user)
        self.db.flush()
        logger.info("Deleted user %d", user_id)

    def list_users(self, page: int = 1, limit: int = 10) -> tuple[list[User], int]:
        """Return one page of users ordered by id, plus the total count."""
        total = self.db.execute(select(func.count(User.id))).scalar_one()
        users = self.db.execute(
            select(User).order_by(User.id).offset((page - 1) * limit).limit(limit)
        ).scalars()
        return list(users), total


__all__ = ["UserDirectory"]
