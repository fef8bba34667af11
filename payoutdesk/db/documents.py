from datetime import datetime
from decimal import Decimal
from typing import Any

from beanie import Document, Indexed
from pydantic import Field

from payoutdesk.models.types import Money, utcnow


class UserDocument(Document):
    name: str = ""
    email: Indexed(str, unique=True)
    password_hash: str = ""
    role: str = "user"  # "user" | "admin"
    phone_number: str | None = None
    referral_code: str | None = None
    session_version: int = 0
    balance: Money = Decimal("0.00")  # stored as Decimal128
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"
        indexes = [[("created_at", -1)]]


class WithdrawDocument(Document):
    user_id: str
    amount: Money
    price_at_request: Money
    bank_name: str
    account_name: str
    account_no: str
    ifsc_code: str
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "withdraws"
        indexes = [
            [("created_at", -1)],
            [("user_id", 1), ("created_at", -1)],
        ]


class PriceDocument(Document):
    """Append-only; the newest row is the current price."""
    price: Money
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "prices"
        indexes = [[("created_at", -1)]]


class SingletonDocument(Document):
    """At most one row per kind: bank_details, crypto_details, qr_image."""
    kind: Indexed(str, unique=True)
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "singletons"


DOCUMENT_MODELS = [
    UserDocument,
    WithdrawDocument,
    PriceDocument,
    SingletonDocument,
]
