"""Balance ledger: withdrawals and administrative balance overrides."""

from decimal import Decimal
from typing import Any, Mapping

from payoutdesk.core.config import Settings
from payoutdesk.core.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    PreconditionFailedError,
    UnauthorizedError,
)
from payoutdesk.core.locks import KeyedLock
from payoutdesk.core.logging import get_logger
from payoutdesk.core.money import parse_amount, parse_balance
from payoutdesk.core.validation import require_text_fields
from payoutdesk.db.base import RecordStore, call_store
from payoutdesk.models.types import utcnow
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest

log = get_logger(__name__)

PAYOUT_FIELDS = {
    "bankName": "bank_name",
    "accountName": "account_name",
    "accountNo": "account_no",
    "ifscCode": "ifsc_code",
}


class LedgerService:
    """
    Every balance mutation for a user runs inside that user's lock, and the store applies
    the decrement conditionally (balance >= amount) together with the withdrawal insert.
    The lock serialises requests in this process; the conditional update covers other processes.
    """

    def __init__(self, store: RecordStore, settings: Settings) -> None:
        self.store = store
        self.timeout = settings.store_timeout_seconds
        self.read_attempts = settings.store_read_attempts
        self._locks = KeyedLock()

    async def request_withdrawal(
        self,
        principal: User | None,
        amount: Any,
        payout: Mapping[str, Any],
    ) -> WithdrawRequest:
        """Validate everything first, then debit and record atomically. State is unchanged on failure."""
        if principal is None:
            raise UnauthorizedError("Not authenticated")
        value = parse_amount(amount)
        details = require_text_fields(payout, PAYOUT_FIELDS)
        quote = await call_store(
            self.store.latest_price, op="latest_price", timeout=self.timeout, attempts=self.read_attempts
        )
        if quote is None:
            raise PreconditionFailedError("No price data available")

        async with self._locks.hold(principal.id):
            user = await call_store(
                lambda: self.store.get_user(principal.id),
                op="get_user",
                timeout=self.timeout,
                attempts=self.read_attempts,
            )
            if user is None:
                raise NotFoundError("User not found")
            if user.balance < value:
                log.info(
                    "withdraw_rejected",
                    user_id=user.id,
                    amount=str(value),
                    balance=str(user.balance),
                    reason="insufficient_balance",
                )
                raise InsufficientBalanceError(details={"balance": str(user.balance), "amount": str(value)})
            withdraw = WithdrawRequest(
                user_id=user.id,
                amount=value,
                price_at_request=quote.price,
                **details,
            )
            updated = await call_store(
                lambda: self.store.debit_and_record(withdraw),
                op="debit_and_record",
                timeout=self.timeout,
            )
        log.info(
            "withdraw_requested",
            user_id=user.id,
            withdraw_id=withdraw.id,
            amount=str(value),
            balance_after=str(updated.balance),
            price_at_request=str(quote.price),
        )
        return withdraw

    async def list_withdrawals(self, limit: int, offset: int) -> list[WithdrawRequest]:
        return await call_store(
            lambda: self.store.list_withdrawals(limit, offset),
            op="list_withdrawals",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )

    async def set_user_balance(self, actor: User, user_id: str, new_balance: Any) -> User:
        """Administrative override; caller authorisation is checked at the HTTP layer."""
        value: Decimal = parse_balance(new_balance)
        async with self._locks.hold(user_id):
            user = await call_store(
                lambda: self.store.set_user_balance(user_id, value, utcnow()),
                op="set_user_balance",
                timeout=self.timeout,
            )
        if user is None:
            raise NotFoundError("User not found")
        log.info("balance_overridden", user_id=user_id, actor_id=actor.id, balance=str(value))
        return user
