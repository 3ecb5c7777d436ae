"""Admin status-change request routes."""

import logging

from fastapi import APIRouter, Depends, Response, status

from quillboard.api.deps import get_current_caller, get_status_change_service
from quillboard.schemas.status_change import (
    AppliedResponse,
    MessageResponse,
    PendingResponse,
    RejectPayload,
    RequestListResponse,
    ResolutionResponse,
    SetAdminPayload,
    StatusChangeRequestResponse,
    UserAdminView,
)
from quillboard.services.auth_service import Caller
from quillboard.services.status_change_service import Outcome, StatusChangeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin-status"])


@router.post(
    "/set-admin",
    response_model=AppliedResponse | PendingResponse,
    responses={202: {"model": PendingResponse}},
)
def set_admin(
    payload: SetAdminPayload,
    response: Response,
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> AppliedResponse | PendingResponse:
    """
    Promote or demote a user.

    Returns:
        200: Change applied immediately (super-admin caller)
        202: Request filed, awaiting super-admin approval
        502: Request filed but super-admins could not be notified
    """
    logger.info(
        "set-admin: caller=%d target=%s action=%s",
        caller.id,
        payload.target_user_id,
        payload.action,
    )
    result = service.request_status_change(
        caller,
        target_user_id=payload.target_user_id,
        action=payload.action,
        reason=payload.reason,
    )

    if result.outcome is Outcome.APPLIED:
        return AppliedResponse(user=UserAdminView.model_validate(result.user))

    response.status_code = status.HTTP_202_ACCEPTED
    return PendingResponse(request=StatusChangeRequestResponse.model_validate(result.request))


@router.get("/status-change-requests", response_model=RequestListResponse)
def list_pending_requests(
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> RequestListResponse:
    """List all pending requests (super-admin only)."""
    requests = service.list_pending_requests(caller)
    return RequestListResponse(
        requests=[StatusChangeRequestResponse.model_validate(r) for r in requests]
    )


@router.post("/status-change-requests/{request_id}/approve", response_model=ResolutionResponse)
def approve_request(
    request_id: int,
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> ResolutionResponse:
    request = service.approve_request(caller, request_id)
    return ResolutionResponse(
        message="Request approved and user status updated.",
        request=StatusChangeRequestResponse.model_validate(request),
    )


@router.post("/status-change-requests/{request_id}/reject", response_model=ResolutionResponse)
def reject_request(
    request_id: int,
    payload: RejectPayload | None = None,
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> ResolutionResponse:
    notes = payload.notes if payload else None
    request = service.reject_request(caller, request_id, notes=notes)
    return ResolutionResponse(
        message="Request rejected.",
        request=StatusChangeRequestResponse.model_validate(request),
    )


@router.get("/my-status-change-requests", response_model=RequestListResponse)
def list_my_requests(
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> RequestListResponse:
    """Requests the caller filed, in every status."""
    requests = service.list_my_requests(caller)
    return RequestListResponse(
        requests=[StatusChangeRequestResponse.model_validate(r) for r in requests]
    )


@router.delete("/status-change-requests/{request_id}", response_model=MessageResponse)
def delete_request(
    request_id: int,
    caller: Caller = Depends(get_current_caller),
    service: StatusChangeService = Depends(get_status_change_service),
) -> MessageResponse:
    service.delete_request(caller, request_id)
    return MessageResponse(message="Request deleted successfully")
