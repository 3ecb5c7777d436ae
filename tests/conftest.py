"""Pytest configuration and shared fixtures."""

import os

# Configure BEFORE importing quillboard so Settings and the engine pick it up
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STATUS_CHANGE_RATE_LIMIT_SECONDS"] = "0"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes"
os.environ.pop("SMTP_HOST", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import quillboard.models  # noqa: E402,F401
from quillboard.api.deps import get_status_change_service  # noqa: E402
from quillboard.database import Base, build_engine, get_db  # noqa: E402
from quillboard.main import app  # noqa: E402
from quillboard.models.user import User  # noqa: E402
from quillboard.services.auth_service import create_access_token  # noqa: E402
from quillboard.services.email_service import EmailDeliveryError, EmailService  # noqa: E402
from quillboard.services.notification_service import NotificationService  # noqa: E402
from quillboard.services.rate_limiter import RateLimiter  # noqa: E402
from quillboard.services.status_change_service import StatusChangeService  # noqa: E402

test_engine = build_engine("sqlite:///:memory:")


class FakeEmailService(EmailService):
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_with: Exception | None = None

    def is_configured(self) -> bool:
        return True

    def send_email(self, to_addresses: list[str], subject: str, body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": list(to_addresses), "subject": subject, "body": body})


@pytest.fixture(scope="function")
def test_db_session():
    """Provide a test database session with all tables created."""
    Base.metadata.create_all(bind=test_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()

    def override_get_db():
        try:
            yield session
        finally:
            pass  # Don't close, let fixture handle cleanup

    app.dependency_overrides[get_db] = override_get_db

    yield session

    session.close()
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def fake_email() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def failing_email(fake_email) -> FakeEmailService:
    fake_email.fail_with = EmailDeliveryError("SMTP connection refused")
    return fake_email


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """Limiter with limiting disabled; tests that need a window build their own."""
    return RateLimiter(window_seconds=0)


@pytest.fixture
def service(test_db_session, fake_email, rate_limiter) -> StatusChangeService:
    return StatusChangeService(
        test_db_session,
        notifier=NotificationService(test_db_session, fake_email),
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def client(test_db_session, service):
    """FastAPI test client wired to the test session and fake mail."""
    app.dependency_overrides[get_status_change_service] = lambda: service
    return TestClient(app)


@pytest.fixture
def make_user(test_db_session):
    """Factory creating committed users."""
    counter = {"n": 0}

    def _make_user(
        username: str | None = None,
        *,
        admin: bool = False,
        super_admin: bool = False,
        email: str | None = "default",
        verified: bool = True,
    ) -> User:
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            fullname=username.title(),
            email=f"{username}@example.com" if email == "default" else email,
            is_admin=admin or super_admin,
            is_super_admin=super_admin,
            is_verified=verified,
        )
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user("root", super_admin=True)


@pytest.fixture
def admin(make_user) -> User:
    return make_user("editor", admin=True)


@pytest.fixture
def target(make_user) -> User:
    return make_user("writer")


@pytest.fixture
def auth_header():
    """Build an Authorization header for a user."""

    def _auth_header(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_header
