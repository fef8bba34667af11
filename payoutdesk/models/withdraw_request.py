from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from payoutdesk.models.types import Money, new_id, utcnow


class WithdrawRequest(BaseModel):
    """Immutable audit record of one balance decrement."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    amount: Money
    price_at_request: Money
    bank_name: str
    account_name: str
    account_no: str
    ifsc_code: str
    created_at: datetime = Field(default_factory=utcnow)
