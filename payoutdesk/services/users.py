"""Email/password accounts and signed session tokens (the session provider)."""

import re
from datetime import datetime, timedelta
from typing import Any, Mapping

from pydantic import BaseModel
from starlette.requests import cookie_parser

from payoutdesk.core.config import Settings
from payoutdesk.core.exceptions import BadRequestError, UnauthorizedError
from payoutdesk.core.logging import get_logger
from payoutdesk.core.security import (
    create_session_token,
    hash_password,
    load_session_token,
    verify_password,
)
from payoutdesk.db.base import RecordStore, call_store
from payoutdesk.models.types import utcnow
from payoutdesk.models.user import User

log = get_logger(__name__)

SESSION_COOKIE_NAME = "payoutdesk_session"
MIN_PASSWORD_LENGTH = 8
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Session(BaseModel):
    token: str
    user: User
    expires_at: datetime


def _optional_text(body: Mapping[str, Any], key: str) -> str | None:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequestError(f"{key} must be a string")
    return value.strip() or None


def _token_from_headers(headers: Mapping[str, str]) -> str | None:
    auth = headers.get("authorization") or ""
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return cookie_parser(headers.get("cookie") or "").get(SESSION_COOKIE_NAME) or None


class UserService:
    def __init__(self, store: RecordStore, settings: Settings) -> None:
        self.store = store
        self.timeout = settings.store_timeout_seconds
        self.read_attempts = settings.store_read_attempts
        self.session_max_age = settings.session_max_age_seconds

    async def _get_user(self, user_id: str) -> User | None:
        return await call_store(
            lambda: self.store.get_user(user_id),
            op="get_user",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )

    def _issue_session(self, user: User) -> Session:
        token = create_session_token({"user_id": user.id, "session_version": user.session_version})
        return Session(
            token=token,
            user=user,
            expires_at=utcnow() + timedelta(seconds=self.session_max_age),
        )

    async def get_session(self, headers: Mapping[str, str]) -> Session | None:
        """Resolve the principal behind a request, or None."""
        token = _token_from_headers(headers)
        if not token:
            return None
        payload = load_session_token(token, self.session_max_age)
        if not payload or not payload.get("user_id"):
            return None
        user = await self._get_user(payload["user_id"])
        if not user or payload.get("session_version") != user.session_version:
            return None
        return Session(
            token=token,
            user=user,
            expires_at=utcnow() + timedelta(seconds=self.session_max_age),
        )

    async def sign_up(self, body: Mapping[str, Any]) -> Session:
        email = _optional_text(body, "email")
        password = body.get("password")
        name = _optional_text(body, "name") or ""
        if not email or not EMAIL_RE.match(email):
            raise BadRequestError("A valid email is required")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise BadRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        user = User(
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            phone_number=_optional_text(body, "phoneNumber"),
            referral_code=_optional_text(body, "referralCode"),
        )
        user = await call_store(lambda: self.store.create_user(user), op="create_user", timeout=self.timeout)
        log.info("user_signed_up", user_id=user.id, email=user.email)
        return self._issue_session(user)

    async def sign_in(self, body: Mapping[str, Any]) -> Session:
        email = _optional_text(body, "email")
        password = body.get("password")
        if not email or not isinstance(password, str) or not password:
            raise BadRequestError("Email and password are required")
        user = await call_store(
            lambda: self.store.get_user_by_email(email.lower()),
            op="get_user_by_email",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )
        if not user or not verify_password(password, user.password_hash):
            log.info("sign_in_failed", email=email.lower())
            raise UnauthorizedError("Invalid email or password")
        log.info("user_signed_in", user_id=user.id)
        return self._issue_session(user)

    async def sign_out(self, user: User) -> None:
        """Invalidates every outstanding token for this user."""
        await call_store(
            lambda: self.store.bump_session_version(user.id),
            op="bump_session_version",
            timeout=self.timeout,
        )
        log.info("user_signed_out", user_id=user.id)

    async def delete_user(self, user: User, password: Any) -> None:
        if not isinstance(password, str) or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid password")
        await call_store(lambda: self.store.delete_user(user.id), op="delete_user", timeout=self.timeout)
        log.info("user_deleted", user_id=user.id)

    async def list_users(self, limit: int, offset: int) -> list[User]:
        return await call_store(
            lambda: self.store.list_users(limit, offset),
            op="list_users",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )
