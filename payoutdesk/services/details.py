"""Bank and crypto payout details: one record per kind, upserted in place."""

from typing import Any, Mapping

from pydantic import BaseModel

from payoutdesk.core.config import Settings
from payoutdesk.core.exceptions import NotFoundError
from payoutdesk.core.logging import get_logger
from payoutdesk.core.validation import require_text_fields
from payoutdesk.db.base import RecordStore, call_store
from payoutdesk.models.payout_details import BankDetails, CryptoDetails
from payoutdesk.models.types import utcnow

log = get_logger(__name__)

# kind -> (model, wire field -> attribute)
KINDS: dict[str, tuple[type[BaseModel], dict[str, str]]] = {
    "bank_details": (
        BankDetails,
        {
            "bankName": "bank_name",
            "accountName": "account_name",
            "accountNo": "account_no",
            "ifscCode": "ifsc_code",
        },
    ),
    "crypto_details": (
        CryptoDetails,
        {
            "walletAddress": "wallet_address",
            "currencyName": "currency_name",
        },
    ),
}


class PayoutDetailsService:
    def __init__(self, store: RecordStore, settings: Settings) -> None:
        self.store = store
        self.timeout = settings.store_timeout_seconds
        self.read_attempts = settings.store_read_attempts

    def _kind(self, kind: str) -> tuple[type[BaseModel], dict[str, str]]:
        if kind not in KINDS:
            raise NotFoundError(f"Unknown details kind: {kind}")
        return KINDS[kind]

    async def get_details(self, kind: str) -> BaseModel:
        """Stored details, or an empty record of the right shape when none exist."""
        model, _ = self._kind(kind)
        data = await call_store(
            lambda: self.store.get_singleton(kind),
            op="get_singleton",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )
        return model.model_validate(data) if data else model()

    async def upsert_details(self, kind: str, body: Mapping[str, Any]) -> BaseModel:
        model, fields = self._kind(kind)
        record = model(**require_text_fields(body, fields), updated_at=utcnow())
        _, current = await call_store(
            lambda: self.store.upsert_singleton(kind, record.model_dump()),
            op="upsert_singleton",
            timeout=self.timeout,
        )
        log.info("details_updated", kind=kind)
        return model.model_validate(current)
