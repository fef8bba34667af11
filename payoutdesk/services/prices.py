"""Price quotes. Append-only: recording a price never overwrites history."""

from typing import Any

from payoutdesk.core.config import Settings
from payoutdesk.core.logging import get_logger
from payoutdesk.core.money import parse_price
from payoutdesk.db.base import RecordStore, call_store
from payoutdesk.models.price_quote import PriceQuote

log = get_logger(__name__)


class PriceService:
    def __init__(self, store: RecordStore, settings: Settings) -> None:
        self.store = store
        self.timeout = settings.store_timeout_seconds
        self.read_attempts = settings.store_read_attempts

    async def get_current_price(self) -> PriceQuote | None:
        return await call_store(
            self.store.latest_price,
            op="latest_price",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )

    async def record_price(self, value: Any) -> PriceQuote:
        quote = PriceQuote(price=parse_price(value))
        await call_store(lambda: self.store.insert_price(quote), op="insert_price", timeout=self.timeout)
        log.info("price_recorded", price=str(quote.price), quote_id=quote.id)
        return quote
