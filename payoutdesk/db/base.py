"""Record store interface and the guarded call wrapper every service goes through."""

import asyncio
from abc import ABC, abstractmethod
from decimal import Decimal
from datetime import datetime
from functools import lru_cache
from typing import Any, Awaitable, Callable, TypeVar

from payoutdesk.core.config import Settings, get_settings
from payoutdesk.core.exceptions import StorageUnavailableError
from payoutdesk.core.logging import get_logger
from payoutdesk.models.price_quote import PriceQuote
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest

log = get_logger(__name__)

T = TypeVar("T")


class RecordStore(ABC):
    async def connect(self) -> None:
        """Open connections / register schemas. No-op by default."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    # Users

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Insert user; ConflictError if the e-mail is taken."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        ...

    @abstractmethod
    async def list_users(self, limit: int, offset: int) -> list[User]:
        """Newest first."""
        ...

    @abstractmethod
    async def set_user_balance(self, user_id: str, balance: Decimal, updated_at: datetime) -> User | None:
        """Overwrite balance in a single-record update; None if the user does not exist."""
        ...

    @abstractmethod
    async def bump_session_version(self, user_id: str) -> None:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        ...

    # Withdrawals

    @abstractmethod
    async def debit_and_record(self, withdraw: WithdrawRequest) -> User:
        """
        Atomic unit: decrement balance by withdraw.amount only where balance >= amount,
        set updated_at, and insert the withdrawal. Either all of it persists or none.
        Raises InsufficientBalanceError / NotFoundError without changing state.
        """
        ...

    @abstractmethod
    async def list_withdrawals(self, limit: int, offset: int) -> list[WithdrawRequest]:
        """Newest first."""
        ...

    # Prices

    @abstractmethod
    async def latest_price(self) -> PriceQuote | None:
        ...

    @abstractmethod
    async def insert_price(self, quote: PriceQuote) -> PriceQuote:
        ...

    # Singletons (payout details, QR image)

    @abstractmethod
    async def get_singleton(self, kind: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def upsert_singleton(
        self, kind: str, data: dict[str, Any]
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        """Atomically replace the single record of this kind; return (previous, current)."""
        ...


async def call_store(
    factory: Callable[[], Awaitable[T]],
    *,
    op: str,
    timeout: float,
    attempts: int = 1,
) -> T:
    """
    Run one record store call under a timeout.
    attempts > 1 retries StorageUnavailableError; pass it only for idempotent reads.
    """
    attempts = max(1, attempts)
    attempt = 1
    while True:
        try:
            return await asyncio.wait_for(factory(), timeout=timeout)
        except asyncio.TimeoutError as e:
            log.error("store_timeout", op=op, attempt=attempt, timeout=timeout)
            if attempt >= attempts:
                raise StorageUnavailableError() from e
        except StorageUnavailableError:
            if attempt >= attempts:
                raise
        log.warning("store_retry", op=op, attempt=attempt)
        attempt += 1


@lru_cache
def get_record_store() -> RecordStore:
    return build_record_store(get_settings())


def build_record_store(settings: Settings) -> RecordStore:
    if settings.record_store_backend == "memory":
        from payoutdesk.db.memory import MemoryRecordStore
        return MemoryRecordStore()
    from payoutdesk.db.mongo import MongoRecordStore
    return MongoRecordStore(settings)
