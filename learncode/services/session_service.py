"""
session_service.py: Credential storage and the per-request session context.
The bearer token lives in a single cookie, wrapped in a signed JWT so a
tampered value reads as absent. SessionStore is the only writer of that cookie.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from jose import JWTError, jwt

from learncode import config
from learncode.models import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Read-only view of who is signed in, handed to routes and views."""

    token: str
    principal: Principal

    @property
    def is_admin(self) -> bool:
        return self.principal.is_admin


def create_token(upstream_token: str) -> str:
    """Wrap the API's bearer token in a signed cookie value with an expiry."""
    expire = datetime.now(timezone.utc) + timedelta(days=config.SESSION_COOKIE_DAYS)
    claims = {"tok": upstream_token, "exp": expire}
    return jwt.encode(claims, config.SESSION_SECRET, algorithm=config.SESSION_ALGORITHM)


def verify_token(value: str) -> str | None:
    """Return the wrapped bearer token, or None if the cookie is invalid or expired."""
    try:
        payload = jwt.decode(value, config.SESSION_SECRET, algorithms=[config.SESSION_ALGORITHM])
    except JWTError:
        return None
    token = payload.get("tok")
    return token if isinstance(token, str) and token else None


class SessionStore:
    @staticmethod
    def has_credential(request: Request) -> bool:
        return bool(request.cookies.get(config.SESSION_COOKIE_NAME))

    @staticmethod
    def read(request: Request) -> str | None:
        raw = request.cookies.get(config.SESSION_COOKIE_NAME)
        if not raw:
            return None
        return verify_token(raw)

    @staticmethod
    def write(response: Response, upstream_token: str) -> None:
        """Login: overwrite the stored credential wholesale."""
        response.set_cookie(
            key=config.SESSION_COOKIE_NAME,
            value=create_token(upstream_token),
            max_age=config.SESSION_COOKIE_DAYS * 24 * 3600,
            httponly=True,
            secure=config.SESSION_COOKIE_SECURE,
            samesite="lax",
        )

    @staticmethod
    def discard(response: Response) -> None:
        """Logout, or a credential that failed validation."""
        response.delete_cookie(
            key=config.SESSION_COOKIE_NAME,
            httponly=True,
            secure=config.SESSION_COOKIE_SECURE,
            samesite="lax",
        )
