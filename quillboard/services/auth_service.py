"""Caller identity for admin endpoints.

Verifies bearer access tokens and turns the stored user into a ``Caller``
whose role is fixed for the rest of the request.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

import jwt
from sqlalchemy.orm import Session

from quillboard.config import settings
from quillboard.errors import NotAuthenticatedError
from quillboard.models.user import Role, User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Caller:
    """Authenticated requester with an already-derived role."""

    id: int
    role: Role

    @property
    def is_super_admin(self) -> bool:
        return self.role is Role.SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.ADMIN, Role.SUPER_ADMIN)

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.id, role=user.role)


def create_access_token(user_id: int, ttl_seconds: int | None = None) -> str:
    """Issue an HS256 access token for ``user_id``."""
    now = int(time.time())
    ttl = ttl_seconds if ttl_seconds is not None else settings.access_token_ttl_seconds
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + ttl,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        NotAuthenticatedError: Expired, malformed or wrong token type
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise NotAuthenticatedError("Access token expired") from e
    except jwt.InvalidTokenError as e:
        raise NotAuthenticatedError("Invalid access token") from e

    if payload.get("type") != "access":
        logger.warning("Rejected token with type=%s", payload.get("type"))
        raise NotAuthenticatedError("Invalid token type")
    return payload


def get_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def resolve_caller(db: Session, authorization: str | None) -> Caller:
    """Authenticate the Authorization header and derive the caller's role.

    The user is reloaded so role flags reflect the current directory state,
    not whatever was true when the token was issued.

    Raises:
        NotAuthenticatedError: Missing token, bad token, unknown or unverified user
    """
    token = get_bearer_token(authorization)
    if not token:
        raise NotAuthenticatedError("No token provided")

    payload = decode_access_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise NotAuthenticatedError("Invalid access token") from e

    user = db.get(User, user_id)
    if not user:
        logger.warning("Token for missing user_id=%s", user_id)
        raise NotAuthenticatedError("User does not exist")
    if not user.is_verified:
        logger.warning("Unverified user attempted access: user_id=%s", user_id)
        raise NotAuthenticatedError("User account not verified")

    return Caller.from_user(user)


__all__ = [
    "Caller",
    "create_access_token",
    "decode_access_token",
    "get_bearer_token",
    "resolve_caller",
]
