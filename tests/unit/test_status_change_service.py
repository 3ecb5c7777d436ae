"""Unit tests for quillboard.services.status_change_service."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from quillboard.errors import (
    DuplicateRequestError,
    NotificationFailedError,
    PermissionDeniedError,
    RateLimitedError,
    RequestNotFoundError,
    SelfDemotionError,
    UserNotFoundError,
    ValidationError,
)
from quillboard.models.audit_log import AuditLog
from quillboard.models.notification import Notification
from quillboard.models.status_change_request import (
    AdminStatusChangeRequest,
    RequestStatus,
    StatusChangeAction,
)
from quillboard.models.user import Role, User
from quillboard.services.auth_service import Caller
from quillboard.services.email_service import EmailService
from quillboard.services.notification_service import NotificationService
from quillboard.services.rate_limiter import RateLimiter
from quillboard.services.status_change_service import (
    Outcome,
    StatusChangeService,
    parse_action,
)
from quillboard.services.user_directory import UserDirectory


class BrokenDirectory(UserDirectory):
    """Directory whose flag writes always fail."""

    def set_admin_flag(self, user_id: int, is_admin: bool) -> User:
        raise SQLAlchemyError("directory unavailable")


def requests_in(session) -> list[AdminStatusChangeRequest]:
    return list(session.execute(select(AdminStatusChangeRequest)).scalars())


class TestParseAction:
    @pytest.mark.parametrize("raw", ["promote", "PROMOTE", " promote "])
    def test_accepts_promote(self, raw):
        assert parse_action(raw) is StatusChangeAction.PROMOTE

    def test_passes_enum_through(self):
        assert parse_action(StatusChangeAction.DEMOTE) is StatusChangeAction.DEMOTE

    @pytest.mark.parametrize("raw", [None, "", "delete", "promoted"])
    def test_rejects_unknown(self, raw):
        with pytest.raises(ValidationError):
            parse_action(raw)


class TestSubmission:
    def test_invalid_action_persists_nothing(self, service, test_db_session, admin, target):
        with pytest.raises(ValidationError):
            service.request_status_change(Caller.from_user(admin), target.id, "elevate")
        assert requests_in(test_db_session) == []

    def test_missing_target_id(self, service, admin):
        with pytest.raises(ValidationError):
            service.request_status_change(Caller.from_user(admin), None, "promote")

    def test_unknown_target_for_non_super_admin(self, service, test_db_session, admin):
        with pytest.raises(UserNotFoundError):
            service.request_status_change(Caller.from_user(admin), 404, "promote")
        assert requests_in(test_db_session) == []

    def test_unknown_target_for_super_admin(self, service, super_admin):
        with pytest.raises(UserNotFoundError):
            service.request_status_change(Caller.from_user(super_admin), 404, "promote")

    def test_super_admin_applies_directly(
        self, service, test_db_session, super_admin, target, fake_email
    ):
        result = service.request_status_change(Caller.from_user(super_admin), target.id, "promote")

        assert result.outcome is Outcome.APPLIED
        assert result.user.id == target.id
        assert result.user.is_admin is True
        assert requests_in(test_db_session) == []
        assert fake_email.sent == []

        audit = test_db_session.execute(select(AuditLog)).scalars().one()
        assert audit.entity_type == "user"
        assert audit.action == "promote"
        assert audit.actor_id == super_admin.id

    def test_super_admin_cannot_demote_self(self, service, test_db_session, super_admin):
        with pytest.raises(SelfDemotionError):
            service.request_status_change(Caller.from_user(super_admin), super_admin.id, "demote")

        test_db_session.expire_all()
        assert test_db_session.get(User, super_admin.id).is_admin is True

    def test_super_admin_may_promote_self(self, service, super_admin):
        result = service.request_status_change(
            Caller.from_user(super_admin), super_admin.id, "promote"
        )
        assert result.outcome is Outcome.APPLIED

    def test_non_super_admin_files_pending_request(
        self, service, test_db_session, admin, target, super_admin, fake_email
    ):
        result = service.request_status_change(
            Caller.from_user(admin), target.id, "promote", reason="Writes great posts"
        )

        assert result.outcome is Outcome.PENDING
        request = result.request
        assert request.status is RequestStatus.PENDING
        assert request.requesting_user_id == admin.id
        assert request.target_user_id == target.id
        assert request.reason == "Writes great posts"
        assert request.notes is None

        test_db_session.expire_all()
        assert test_db_session.get(User, target.id).is_admin is False

        assert fake_email.sent[0]["to"] == ["root@example.com"]
        notification = test_db_session.execute(select(Notification)).scalars().one()
        assert notification.notification_for_id == super_admin.id

    def test_regular_user_may_file_request(self, service, make_user, target, super_admin):
        reader = make_user("reader")
        result = service.request_status_change(Caller.from_user(reader), target.id, "promote")
        assert result.outcome is Outcome.PENDING

    def test_missing_reason_stored_as_empty(self, service, admin, target, super_admin):
        result = service.request_status_change(Caller.from_user(admin), target.id, "demote")
        assert result.request.reason == ""

    def test_duplicate_pending_request_rejected(
        self, service, test_db_session, admin, target, super_admin
    ):
        caller = Caller.from_user(admin)
        service.request_status_change(caller, target.id, "promote")

        with pytest.raises(DuplicateRequestError):
            service.request_status_change(caller, target.id, "promote")
        assert len(requests_in(test_db_session)) == 1

    def test_opposite_action_is_not_a_duplicate(self, service, admin, target, super_admin):
        caller = Caller.from_user(admin)
        service.request_status_change(caller, target.id, "promote")

        result = service.request_status_change(caller, target.id, "demote")
        assert result.outcome is Outcome.PENDING

    def test_resolved_request_does_not_block_new_one(
        self, service, admin, target, super_admin
    ):
        caller = Caller.from_user(admin)
        first = service.request_status_change(caller, target.id, "promote").request
        service.reject_request(Caller.from_user(super_admin), first.id)

        result = service.request_status_change(caller, target.id, "promote")
        assert result.outcome is Outcome.PENDING

    def test_unique_index_catches_duplicate_race(
        self, service, test_db_session, admin, target, super_admin, monkeypatch
    ):
        caller = Caller.from_user(admin)
        service.request_status_change(caller, target.id, "promote")

        # Simulate a concurrent submission that passed the pre-check
        monkeypatch.setattr(service, "_find_pending", lambda *args: None)

        with pytest.raises(DuplicateRequestError):
            service.request_status_change(caller, target.id, "promote")
        assert len(requests_in(test_db_session)) == 1

    def test_rate_limited_submission(self, test_db_session, fake_email, admin, target, make_user):
        make_user("root", super_admin=True)
        service = StatusChangeService(
            test_db_session,
            notifier=NotificationService(test_db_session, fake_email),
            rate_limiter=RateLimiter(window_seconds=10),
        )
        caller = Caller.from_user(admin)
        other = make_user("other")

        service.request_status_change(caller, target.id, "promote")
        with pytest.raises(RateLimitedError):
            service.request_status_change(caller, other.id, "promote")
        assert len(requests_in(test_db_session)) == 1

    def test_rate_limit_is_per_caller(self, test_db_session, fake_email, admin, target, make_user):
        make_user("root", super_admin=True)
        service = StatusChangeService(
            test_db_session,
            notifier=NotificationService(test_db_session, fake_email),
            rate_limiter=RateLimiter(window_seconds=10),
        )
        second_admin = make_user("editor2", admin=True)

        service.request_status_change(Caller.from_user(admin), target.id, "promote")
        result = service.request_status_change(Caller.from_user(second_admin), target.id, "promote")
        assert result.outcome is Outcome.PENDING


class TestRateLimitOrdering:
    """With a real window, rejected submissions must not spend the caller's slot."""

    @pytest.fixture
    def limited_service(self, test_db_session, fake_email, super_admin) -> StatusChangeService:
        return StatusChangeService(
            test_db_session,
            notifier=NotificationService(test_db_session, fake_email),
            rate_limiter=RateLimiter(window_seconds=10),
        )

    def test_immediate_identical_resubmission_is_duplicate(
        self, limited_service, test_db_session, admin, target
    ):
        caller = Caller.from_user(admin)
        limited_service.request_status_change(caller, target.id, "promote")

        with pytest.raises(DuplicateRequestError):
            limited_service.request_status_change(caller, target.id, "promote")
        assert len(requests_in(test_db_session)) == 1

    def test_unknown_target_does_not_consume_window(self, limited_service, admin, target):
        caller = Caller.from_user(admin)
        with pytest.raises(UserNotFoundError):
            limited_service.request_status_change(caller, 99999, "promote")

        result = limited_service.request_status_change(caller, target.id, "promote")
        assert result.outcome is Outcome.PENDING

    def test_duplicate_does_not_consume_window(
        self, limited_service, test_db_session, admin, target, make_user
    ):
        caller = Caller.from_user(admin)
        limited_service.request_status_change(caller, target.id, "promote")
        limited_service.rate_limiter.reset()

        with pytest.raises(DuplicateRequestError):
            limited_service.request_status_change(caller, target.id, "promote")

        result = limited_service.request_status_change(caller, make_user("other").id, "promote")
        assert result.outcome is Outcome.PENDING


class TestRequesterLookup:
    def test_missing_requester_fails_before_anything_is_stored(
        self, service, test_db_session, target, super_admin, fake_email
    ):
        ghost = Caller(id=99999, role=Role.ADMIN)

        with pytest.raises(UserNotFoundError):
            service.request_status_change(ghost, target.id, "promote")

        assert requests_in(test_db_session) == []
        assert fake_email.sent == []

    def test_requester_is_not_reloaded_after_commit(
        self, test_db_session, fake_email, admin, target, super_admin
    ):
        lookups: list[int] = []

        class CountingDirectory(UserDirectory):
            def get_or_raise(self, user_id: int) -> User:
                lookups.append(user_id)
                return super().get_or_raise(user_id)

        service = StatusChangeService(
            test_db_session,
            directory=CountingDirectory(test_db_session),
            notifier=NotificationService(test_db_session, fake_email),
            rate_limiter=RateLimiter(window_seconds=0),
        )

        result = service.request_status_change(Caller.from_user(admin), target.id, "promote")

        assert result.outcome is Outcome.PENDING
        assert lookups == [admin.id, target.id]
        assert "Editor (editor@example.com)" in fake_email.sent[0]["body"]


class TestNotificationFailures:
    def test_email_failure_is_degraded_success(
        self, test_db_session, failing_email, admin, target, super_admin
    ):
        service = StatusChangeService(
            test_db_session,
            notifier=NotificationService(test_db_session, failing_email),
            rate_limiter=RateLimiter(window_seconds=0),
        )

        with pytest.raises(NotificationFailedError) as exc:
            service.request_status_change(Caller.from_user(admin), target.id, "promote")

        request = test_db_session.get(AdminStatusChangeRequest, exc.value.request_id)
        assert request.status is RequestStatus.PENDING
        assert request.notes.startswith("Failed to send notification email to super admins.")
        assert "SMTP connection refused" in request.notes

    def test_missing_email_config_is_recorded(
        self, test_db_session, admin, target, super_admin
    ):
        unconfigured = EmailService()
        unconfigured.smtp_host = None
        service = StatusChangeService(
            test_db_session,
            notifier=NotificationService(test_db_session, unconfigured),
            rate_limiter=RateLimiter(window_seconds=0),
        )

        with pytest.raises(NotificationFailedError) as exc:
            service.request_status_change(Caller.from_user(admin), target.id, "promote")

        assert "missing email configuration" in exc.value.message
        request = test_db_session.get(AdminStatusChangeRequest, exc.value.request_id)
        assert request.is_pending
        assert "SMTP_HOST" in request.notes
        # In-app notifications are still delivered
        assert len(test_db_session.execute(select(Notification)).scalars().all()) == 1

    def test_no_super_admin_emails_is_noted_but_pending(
        self, service, test_db_session, make_user, admin, target, fake_email
    ):
        make_user("root", super_admin=True, email=None)

        result = service.request_status_change(Caller.from_user(admin), target.id, "promote")

        assert result.outcome is Outcome.PENDING
        assert result.request.notes == "No valid super admin emails found; email not sent."
        assert fake_email.sent == []


class TestResolution:
    @pytest.fixture
    def pending(self, service, admin, target, super_admin):
        return service.request_status_change(
            Caller.from_user(admin), target.id, "promote", reason="Trusted"
        ).request

    def test_approve_applies_flag(self, service, test_db_session, pending, super_admin, target):
        request = service.approve_request(Caller.from_user(super_admin), pending.id)

        assert request.status is RequestStatus.APPROVED
        assert request.reviewed_by_id == super_admin.id
        assert request.reviewed_at is not None
        test_db_session.expire_all()
        assert test_db_session.get(User, target.id).is_admin is True

    def test_approve_demote_clears_flag(
        self, service, test_db_session, admin, make_user, super_admin
    ):
        moderator = make_user("moderator", admin=True)
        pending = service.request_status_change(
            Caller.from_user(admin), moderator.id, "demote"
        ).request

        service.approve_request(Caller.from_user(super_admin), pending.id)

        test_db_session.expire_all()
        assert test_db_session.get(User, moderator.id).is_admin is False

    def test_approve_requires_super_admin(self, service, pending, admin):
        with pytest.raises(PermissionDeniedError):
            service.approve_request(Caller.from_user(admin), pending.id)

    def test_approve_twice_gives_collapsed_error(self, service, pending, super_admin):
        caller = Caller.from_user(super_admin)
        service.approve_request(caller, pending.id)

        with pytest.raises(RequestNotFoundError) as exc:
            service.approve_request(caller, pending.id)
        assert exc.value.message == "Request not found or already processed"

    def test_approve_missing_gives_collapsed_error(self, service, super_admin):
        with pytest.raises(RequestNotFoundError) as exc:
            service.approve_request(Caller.from_user(super_admin), 404)
        assert exc.value.message == "Request not found or already processed"

    def test_reject_after_approve_fails(self, service, test_db_session, pending, super_admin):
        caller = Caller.from_user(super_admin)
        service.approve_request(caller, pending.id)

        with pytest.raises(RequestNotFoundError):
            service.reject_request(caller, pending.id, notes="too late")
        test_db_session.expire_all()
        assert test_db_session.get(AdminStatusChangeRequest, pending.id).status is (
            RequestStatus.APPROVED
        )

    def test_directory_failure_keeps_request_pending(
        self, test_db_session, fake_email, pending, super_admin, target
    ):
        service = StatusChangeService(
            test_db_session,
            directory=BrokenDirectory(test_db_session),
            notifier=NotificationService(test_db_session, fake_email),
            rate_limiter=RateLimiter(window_seconds=0),
        )

        with pytest.raises(SQLAlchemyError):
            service.approve_request(Caller.from_user(super_admin), pending.id)

        test_db_session.expire_all()
        request = test_db_session.get(AdminStatusChangeRequest, pending.id)
        assert request.status is RequestStatus.PENDING
        assert request.reviewed_by_id is None
        assert test_db_session.get(User, target.id).is_admin is False

    def test_reject_leaves_target_unchanged(
        self, service, test_db_session, pending, super_admin, target
    ):
        request = service.reject_request(
            Caller.from_user(super_admin), pending.id, notes="Not yet"
        )

        assert request.status is RequestStatus.REJECTED
        assert request.notes == "Not yet"
        assert request.reviewed_by_id == super_admin.id
        test_db_session.expire_all()
        assert test_db_session.get(User, target.id).is_admin is False

    def test_reject_without_notes(self, service, pending, super_admin):
        request = service.reject_request(Caller.from_user(super_admin), pending.id)
        assert request.notes == ""

    def test_reject_requires_super_admin(self, service, pending, admin):
        with pytest.raises(PermissionDeniedError):
            service.reject_request(Caller.from_user(admin), pending.id)

    def test_resolutions_are_audited(self, service, test_db_session, pending, super_admin):
        service.approve_request(Caller.from_user(super_admin), pending.id)

        audit = test_db_session.execute(
            select(AuditLog).where(AuditLog.entity_type == "status_change_request")
        ).scalars().one()
        assert audit.action == "approve"
        assert audit.entity_id == pending.id


class TestViewsAndCleanup:
    def test_list_pending_oldest_first(
        self, service, admin, make_user, super_admin
    ):
        caller = Caller.from_user(admin)
        first = service.request_status_change(caller, make_user("a").id, "promote").request
        second = service.request_status_change(caller, make_user("b").id, "promote").request
        third = service.request_status_change(caller, make_user("c").id, "promote").request
        service.reject_request(Caller.from_user(super_admin), second.id)

        pending = service.list_pending_requests(Caller.from_user(super_admin))

        assert [r.id for r in pending] == [first.id, third.id]
        assert pending[0].requesting_user.fullname == "Editor"
        assert pending[0].target_user.fullname == "A"

    def test_list_pending_requires_super_admin(self, service, admin):
        with pytest.raises(PermissionDeniedError):
            service.list_pending_requests(Caller.from_user(admin))

    def test_list_my_requests_newest_first_all_statuses(
        self, service, admin, make_user, super_admin
    ):
        caller = Caller.from_user(admin)
        first = service.request_status_change(caller, make_user("a").id, "promote").request
        second = service.request_status_change(caller, make_user("b").id, "promote").request
        service.approve_request(Caller.from_user(super_admin), first.id)
        service.request_status_change(
            Caller.from_user(make_user("other", admin=True)), make_user("c").id, "promote"
        )

        mine = service.list_my_requests(caller)

        assert [r.id for r in mine] == [second.id, first.id]
        assert mine[1].status is RequestStatus.APPROVED
        assert mine[1].reviewed_by.id == super_admin.id

    def test_requester_can_delete_own_request(
        self, service, test_db_session, admin, target, super_admin
    ):
        request = service.request_status_change(
            Caller.from_user(admin), target.id, "promote"
        ).request

        service.delete_request(Caller.from_user(admin), request.id)

        assert requests_in(test_db_session) == []

    def test_requester_can_delete_resolved_request(
        self, service, test_db_session, admin, target, super_admin
    ):
        request = service.request_status_change(
            Caller.from_user(admin), target.id, "promote"
        ).request
        service.approve_request(Caller.from_user(super_admin), request.id)

        service.delete_request(Caller.from_user(admin), request.id)

        assert requests_in(test_db_session) == []
        # Deleting the record does not undo the approval
        test_db_session.expire_all()
        assert test_db_session.get(User, target.id).is_admin is True

    def test_super_admin_can_delete_any_request(
        self, service, test_db_session, admin, target, super_admin
    ):
        request = service.request_status_change(
            Caller.from_user(admin), target.id, "promote"
        ).request

        service.delete_request(Caller.from_user(super_admin), request.id)

        assert requests_in(test_db_session) == []

    def test_other_admin_cannot_delete(
        self, service, test_db_session, admin, make_user, target, super_admin
    ):
        request = service.request_status_change(
            Caller.from_user(admin), target.id, "promote"
        ).request
        other = make_user("other", admin=True)

        with pytest.raises(PermissionDeniedError) as exc:
            service.delete_request(Caller.from_user(other), request.id)
        assert exc.value.message == "You do not have permission to delete this request"
        assert len(requests_in(test_db_session)) == 1

    def test_delete_missing_request(self, service, super_admin):
        with pytest.raises(RequestNotFoundError) as exc:
            service.delete_request(Caller.from_user(super_admin), 404)
        assert exc.value.message == "Request not found"
