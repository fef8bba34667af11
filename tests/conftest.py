import os
import tempfile
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-memory record store and a throwaway upload directory; no MongoDB needed
os.environ.setdefault("RECORD_STORE_BACKEND", "memory")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("STORAGE_LOCAL_PATH", tempfile.mkdtemp(prefix="payoutdesk-uploads-"))
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("ENV", "test")


@pytest.fixture(autouse=True)
def fresh_services():
    from payoutdesk.deps import reset_services
    reset_services()
    yield
    reset_services()


@pytest.fixture
def settings():
    from payoutdesk.core.config import get_settings
    return get_settings()


@pytest.fixture
def store():
    from payoutdesk.db.base import get_record_store
    return get_record_store()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from payoutdesk.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_user(store):
    """Insert a user directly into the store; returns the stored User."""
    from payoutdesk.core.security import hash_password
    from payoutdesk.models.user import User

    counter = {"n": 0}

    async def _make(balance: str = "0.00", role: str = "user", password: str = "password123"):
        counter["n"] += 1
        user = User(
            name=f"User {counter['n']}",
            email=f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            balance=Decimal(balance),
        )
        return await store.create_user(user)

    return _make


@pytest.fixture
def auth_headers():
    from payoutdesk.core.security import create_session_token

    def _headers(user) -> dict[str, str]:
        token = create_session_token({"user_id": user.id, "session_version": user.session_version})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def record_price(store):
    from payoutdesk.models.price_quote import PriceQuote

    async def _record(price: str = "83.50"):
        return await store.insert_price(PriceQuote(price=Decimal(price)))

    return _record


BANK_FIELDS = {
    "bankName": "State Bank",
    "accountName": "Asha Rao",
    "accountNo": "001122334455",
    "ifscCode": "SBIN0000123",
}


@pytest.fixture
def bank_fields() -> dict[str, str]:
    return dict(BANK_FIELDS)
