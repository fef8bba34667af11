from typing import Any

from fastapi import APIRouter, Body, Depends

from payoutdesk.deps import get_details_service
from payoutdesk.routers.serializers import bank_details_out, crypto_details_out
from payoutdesk.services.details import PayoutDetailsService

router = APIRouter()


@router.get("/bank-details")
async def get_bank_details(details: PayoutDetailsService = Depends(get_details_service)):
    """Current bank details, or empty fields when none were saved."""
    return bank_details_out(await details.get_details("bank_details"))


@router.patch("/bank-details")
async def update_bank_details(
    body: dict[str, Any] | None = Body(default=None),
    details: PayoutDetailsService = Depends(get_details_service),
):
    return bank_details_out(await details.upsert_details("bank_details", body or {}))


@router.get("/crypto-details")
async def get_crypto_details(details: PayoutDetailsService = Depends(get_details_service)):
    return crypto_details_out(await details.get_details("crypto_details"))


@router.patch("/crypto-details")
async def update_crypto_details(
    body: dict[str, Any] | None = Body(default=None),
    details: PayoutDetailsService = Depends(get_details_service),
):
    return crypto_details_out(await details.upsert_details("crypto_details", body or {}))
