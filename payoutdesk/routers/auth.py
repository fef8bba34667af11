from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from payoutdesk.core.config import get_settings
from payoutdesk.deps import get_current_user, get_session, get_user_service
from payoutdesk.models.user import User
from payoutdesk.routers.serializers import user_out
from payoutdesk.services.users import SESSION_COOKIE_NAME, Session, UserService

router = APIRouter()


def _set_cookie(response: Response, session: Session) -> None:
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def _session_out(session: Session) -> dict[str, Any]:
    return {
        "token": session.token,
        "session": {"userId": session.user.id, "expiresAt": session.expires_at.isoformat()},
        "user": user_out(session.user),
    }


@router.post("/sign-up/email")
async def sign_up_email(
    response: Response,
    body: dict[str, Any] | None = Body(default=None),
    users: UserService = Depends(get_user_service),
):
    """Create an account (name, email, password, optional phoneNumber/referralCode) and start a session."""
    session = await users.sign_up(body or {})
    _set_cookie(response, session)
    return _session_out(session)


@router.post("/sign-in/email")
async def sign_in_email(
    response: Response,
    body: dict[str, Any] | None = Body(default=None),
    users: UserService = Depends(get_user_service),
):
    session = await users.sign_in(body or {})
    _set_cookie(response, session)
    return _session_out(session)


@router.post("/sign-out")
async def sign_out(
    response: Response,
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.sign_out(user)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/get-session")
async def get_current_session(session: Session | None = Depends(get_session)):
    """Current session and user, or null."""
    if session is None:
        return None
    return _session_out(session)


@router.post("/delete-user")
async def delete_user(
    response: Response,
    body: dict[str, Any] | None = Body(default=None),
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.delete_user(user, (body or {}).get("password"))
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"success": True}
