from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from payoutdesk.models.types import Money, new_id, utcnow


class PriceQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    price: Money
    created_at: datetime = Field(default_factory=utcnow)
