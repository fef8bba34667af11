from typing import Any

from fastapi import APIRouter, Body, Depends

from payoutdesk.deps import get_price_service
from payoutdesk.routers.serializers import price_out
from payoutdesk.services.prices import PriceService

router = APIRouter()


@router.get("")
async def get_price(prices: PriceService = Depends(get_price_service)):
    """Latest quote; {"price": "0"} before any quote exists."""
    return price_out(await prices.get_current_price())


@router.patch("")
async def record_price(
    body: dict[str, Any] | None = Body(default=None),
    prices: PriceService = Depends(get_price_service),
):
    """Append a new quote; earlier quotes are kept."""
    return price_out(await prices.record_price((body or {}).get("price")))
