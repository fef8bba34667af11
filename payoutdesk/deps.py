"""Shared FastAPI dependencies."""

from functools import lru_cache

from fastapi import Depends, Request

from payoutdesk.core.config import get_settings
from payoutdesk.core.exceptions import ForbiddenError, UnauthorizedError
from payoutdesk.db.base import get_record_store
from payoutdesk.models.user import User
from payoutdesk.services.details import PayoutDetailsService
from payoutdesk.services.ledger import LedgerService
from payoutdesk.services.prices import PriceService
from payoutdesk.services.qr import QrImageService
from payoutdesk.services.users import Session, UserService
from payoutdesk.storage.base import get_storage


@lru_cache
def get_ledger_service() -> LedgerService:
    # one instance per process so every request shares the same per-user locks
    return LedgerService(get_record_store(), get_settings())


@lru_cache
def get_details_service() -> PayoutDetailsService:
    return PayoutDetailsService(get_record_store(), get_settings())


@lru_cache
def get_price_service() -> PriceService:
    return PriceService(get_record_store(), get_settings())


@lru_cache
def get_qr_service() -> QrImageService:
    settings = get_settings()
    return QrImageService(get_record_store(), get_storage(settings), settings)


@lru_cache
def get_user_service() -> UserService:
    return UserService(get_record_store(), get_settings())


def reset_services() -> None:
    """Drop cached store and services (tests, reconfiguration)."""
    for factory in (
        get_record_store,
        get_ledger_service,
        get_details_service,
        get_price_service,
        get_qr_service,
        get_user_service,
    ):
        factory.cache_clear()


async def get_session(
    request: Request,
    users: UserService = Depends(get_user_service),
) -> Session | None:
    return await users.get_session(request.headers)


async def get_optional_principal(session: Session | None = Depends(get_session)) -> User | None:
    return session.user if session else None


async def get_current_user(principal: User | None = Depends(get_optional_principal)) -> User:
    """Dependency: principal from session cookie or bearer token."""
    if principal is None:
        raise UnauthorizedError("Not authenticated")
    return principal


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency: require current user to have role admin."""
    if user.role != "admin":
        raise ForbiddenError("Admin only")
    return user
