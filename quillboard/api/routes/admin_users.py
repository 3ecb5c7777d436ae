"""Admin user management routes."""

from fastapi import APIRouter, Depends, Query

from quillboard.api.deps import get_admin_user_service, get_current_caller
from quillboard.schemas.admin import (
    BulkUserActionPayload,
    BulkUserActionResponse,
    UserListResponse,
)
from quillboard.schemas.status_change import UserAdminView
from quillboard.services.admin_user_service import AdminUserService
from quillboard.services.auth_service import Caller

router = APIRouter(prefix="/api/admin", tags=["admin-users"])


@router.get("/users", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(get_current_caller),
    service: AdminUserService = Depends(get_admin_user_service),
) -> UserListResponse:
    users, total = service.list_users(caller, page=page, limit=limit)
    return UserListResponse(
        users=[UserAdminView.model_validate(u) for u in users],
        total_users=total,
        page=page,
        limit=limit,
    )


@router.post("/bulk-user-action", response_model=BulkUserActionResponse)
def bulk_user_action(
    payload: BulkUserActionPayload,
    caller: Caller = Depends(get_current_caller),
    service: AdminUserService = Depends(get_admin_user_service),
) -> BulkUserActionResponse:
    """
    Promote, demote or delete several users at once (super-admin only).

    Always 200 once authorized; inspect ``failed`` for per-id errors.
    """
    result = service.bulk_user_action(caller, payload.user_ids, payload.action)
    return BulkUserActionResponse(success=result.success, failed=result.failed)
