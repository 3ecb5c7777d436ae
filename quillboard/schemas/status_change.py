"""Pydantic schemas for the admin status-change workflow."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from quillboard.models.status_change_request import RequestStatus, StatusChangeAction


class UserSummary(BaseModel):
    """Identity fields shown next to a request."""

    id: int
    fullname: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserAdminView(BaseModel):
    """User as seen in the admin user table."""

    id: int
    username: str
    fullname: str
    email: str | None = None
    is_admin: bool
    is_super_admin: bool

    model_config = ConfigDict(from_attributes=True)


class SetAdminPayload(BaseModel):
    """Payload for POST /api/admin/set-admin."""

    target_user_id: int | None = Field(None, description="User whose admin flag changes")
    action: str | None = Field(None, description="'promote' or 'demote'")
    reason: str | None = Field(None, description="Optional justification for reviewers")


class StatusChangeRequestResponse(BaseModel):
    """A status-change request with related users resolved."""

    id: int
    action: StatusChangeAction
    status: RequestStatus
    reason: str = ""
    notes: str | None = None
    created_at: datetime
    reviewed_at: datetime | None = None
    requesting_user: UserSummary | None = None
    target_user: UserSummary | None = None
    reviewed_by: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class AppliedResponse(BaseModel):
    """Super-admin change took effect immediately."""

    outcome: Literal["applied"] = "applied"
    user: UserAdminView


class PendingResponse(BaseModel):
    """Change filed for super-admin approval; nothing changed yet."""

    outcome: Literal["pending"] = "pending"
    message: str = "Request created. Awaiting super admin approval."
    request: StatusChangeRequestResponse


class RejectPayload(BaseModel):
    """Payload for POST /api/admin/status-change-requests/{id}/reject."""

    notes: str | None = Field(None, description="Why the request was rejected")


class RequestListResponse(BaseModel):
    requests: list[StatusChangeRequestResponse]


class ResolutionResponse(BaseModel):
    success: bool = True
    message: str
    request: StatusChangeRequestResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str


__all__ = [
    "UserSummary",
    "UserAdminView",
    "SetAdminPayload",
    "StatusChangeRequestResponse",
    "AppliedResponse",
    "PendingResponse",
    "RejectPayload",
    "RequestListResponse",
    "ResolutionResponse",
    "MessageResponse",
]
