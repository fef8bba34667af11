from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from payoutdesk.models.types import Money, new_id, utcnow


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    email: str
    password_hash: str = ""
    role: str = "user"  # "user" | "admin"
    phone_number: str | None = None
    referral_code: str | None = None
    session_version: int = 0
    balance: Money = Decimal("0.00")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
