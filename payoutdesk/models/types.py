from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from bson import Decimal128, ObjectId
from pydantic import BeforeValidator


def _from_decimal128(v: Any) -> Any:
    return v.to_decimal() if isinstance(v, Decimal128) else v


# Decimal that also accepts BSON Decimal128 as read back from MongoDB
Money = Annotated[Decimal, BeforeValidator(_from_decimal128)]


def new_id() -> str:
    return str(ObjectId())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
