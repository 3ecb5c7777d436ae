"""FastAPI dependencies shared by admin routes."""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from quillboard.database import get_db
from quillboard.services.admin_user_service import AdminUserService
from quillboard.services.auth_service import Caller, resolve_caller
from quillboard.services.status_change_service import StatusChangeService


def get_current_caller(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Caller:
    """Authenticate the request and derive the caller's role once."""
    return resolve_caller(db, authorization)


def get_status_change_service(db: Session = Depends(get_db)) -> StatusChangeService:
    return StatusChangeService(db)


def get_admin_user_service(db: Session = Depends(get_db)) -> AdminUserService:
    return AdminUserService(db)
