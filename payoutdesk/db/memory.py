"""Process-local record store. Each mutation completes without awaiting, so it is atomic under asyncio."""

from decimal import Decimal
from datetime import datetime
from typing import Any

from payoutdesk.core.exceptions import ConflictError, InsufficientBalanceError, NotFoundError
from payoutdesk.db.base import RecordStore
from payoutdesk.models.price_quote import PriceQuote
from payoutdesk.models.types import utcnow
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest


class MemoryRecordStore(RecordStore):
    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._withdraws: list[WithdrawRequest] = []
        self._prices: list[PriceQuote] = []
        self._singletons: dict[str, dict[str, Any]] = {}

    async def create_user(self, user: User) -> User:
        email = user.email.lower()
        if any(u.email.lower() == email for u in self._users.values()):
            raise ConflictError("Email already registered")
        self._users[user.id] = user.model_copy()
        return user.model_copy()

    async def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_email(self, email: str) -> User | None:
        email = email.lower()
        for user in self._users.values():
            if user.email.lower() == email:
                return user.model_copy()
        return None

    async def list_users(self, limit: int, offset: int) -> list[User]:
        users = sorted(self._users.values(), key=lambda u: u.created_at, reverse=True)
        return [u.model_copy() for u in users[offset:offset + limit]]

    async def set_user_balance(self, user_id: str, balance: Decimal, updated_at: datetime) -> User | None:
        user = self._users.get(user_id)
        if not user:
            return None
        updated = user.model_copy(update={"balance": balance, "updated_at": updated_at})
        self._users[user_id] = updated
        return updated.model_copy()

    async def bump_session_version(self, user_id: str) -> None:
        user = self._users.get(user_id)
        if user:
            self._users[user_id] = user.model_copy(
                update={"session_version": user.session_version + 1, "updated_at": utcnow()}
            )

    async def delete_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    async def debit_and_record(self, withdraw: WithdrawRequest) -> User:
        user = self._users.get(withdraw.user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.balance < withdraw.amount:
            raise InsufficientBalanceError(details={"balance": str(user.balance)})
        updated = user.model_copy(
            update={"balance": user.balance - withdraw.amount, "updated_at": withdraw.created_at}
        )
        self._users[user.id] = updated
        self._withdraws.append(withdraw)
        return updated.model_copy()

    async def list_withdrawals(self, limit: int, offset: int) -> list[WithdrawRequest]:
        newest_first = list(reversed(self._withdraws))
        return newest_first[offset:offset + limit]

    async def latest_price(self) -> PriceQuote | None:
        return self._prices[-1] if self._prices else None

    async def insert_price(self, quote: PriceQuote) -> PriceQuote:
        self._prices.append(quote)
        return quote

    async def get_singleton(self, kind: str) -> dict[str, Any] | None:
        data = self._singletons.get(kind)
        return dict(data) if data is not None else None

    async def upsert_singleton(
        self, kind: str, data: dict[str, Any]
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        previous = self._singletons.get(kind)
        self._singletons[kind] = dict(data)
        return (dict(previous) if previous is not None else None), dict(data)
