from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from payoutdesk.core.pagination import DEFAULT_LIMIT, MAX_LIMIT, paginate
from payoutdesk.deps import get_current_user, get_ledger_service, get_user_service, require_admin
from payoutdesk.models.user import User
from payoutdesk.routers.serializers import user_out
from payoutdesk.services.ledger import LedgerService
from payoutdesk.services.users import UserService

router = APIRouter()


@router.get("")
async def list_users(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    users: UserService = Depends(get_user_service),
):
    """Users, newest first."""
    limit, offset = paginate(limit, offset)
    return [user_out(u) for u in await users.list_users(limit, offset)]


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return user_out(user)


@router.patch("/{user_id}/balance")
async def set_user_balance(
    user_id: str,
    body: dict[str, Any] | None = Body(default=None),
    admin: User = Depends(require_admin),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Admin override of a user's balance."""
    user = await ledger.set_user_balance(admin, user_id, (body or {}).get("balance"))
    return user_out(user)
