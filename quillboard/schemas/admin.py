"""Pydantic schemas for admin user management."""

from typing import Any

from pydantic import BaseModel, Field

from quillboard.schemas.status_change import UserAdminView


class BulkUserActionPayload(BaseModel):
    """Payload for POST /api/admin/bulk-user-action."""

    user_ids: list[int] = Field(..., description="Users to act on")
    action: str = Field(..., description="'promote', 'demote' or 'delete'")


class BulkUserActionResponse(BaseModel):
    """Per-id results; each id succeeds or fails independently."""

    success: list[dict[str, Any]]
    failed: list[dict[str, Any]]


class UserListResponse(BaseModel):
    users: list[UserAdminView]
    total_users: int
    page: int
    limit: int
