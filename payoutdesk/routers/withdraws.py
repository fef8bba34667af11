from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from payoutdesk.core.pagination import DEFAULT_LIMIT, MAX_LIMIT, paginate
from payoutdesk.deps import get_ledger_service, get_optional_principal
from payoutdesk.models.user import User
from payoutdesk.routers.serializers import withdraw_out
from payoutdesk.services.ledger import LedgerService

router = APIRouter()


@router.get("")
async def list_withdraws(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Withdrawal requests, newest first."""
    limit, offset = paginate(limit, offset)
    return [withdraw_out(w) for w in await ledger.list_withdrawals(limit, offset)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_withdraw(
    body: dict[str, Any] | None = Body(default=None),
    principal: User | None = Depends(get_optional_principal),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Debit the caller's balance and record the withdrawal request."""
    body = body or {}
    withdraw = await ledger.request_withdrawal(principal, body.get("amount"), body)
    return withdraw_out(withdraw)
