"""Wire shapes (camelCase keys, money as decimal strings)."""

from typing import Any

from payoutdesk.core.money import format_money, format_price
from payoutdesk.models.payout_details import BankDetails, CryptoDetails
from payoutdesk.models.price_quote import PriceQuote
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def user_out(user: User) -> dict[str, Any]:
    """Trimmed user: never includes credentials or session state."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phoneNumber": user.phone_number,
        "referralCode": user.referral_code,
        "balance": format_money(user.balance),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def withdraw_out(w: WithdrawRequest) -> dict[str, Any]:
    return {
        "id": w.id,
        "userId": w.user_id,
        "amount": format_money(w.amount),
        "priceAtRequest": format_price(w.price_at_request),
        "bankName": w.bank_name,
        "accountName": w.account_name,
        "accountNo": w.account_no,
        "ifscCode": w.ifsc_code,
        "createdAt": _iso(w.created_at),
    }


def price_out(quote: PriceQuote | None) -> dict[str, Any]:
    if quote is None:
        return {"price": "0", "createdAt": None}
    return {"id": quote.id, "price": format_price(quote.price), "createdAt": _iso(quote.created_at)}


def bank_details_out(d: BankDetails) -> dict[str, Any]:
    return {
        "bankName": d.bank_name,
        "accountName": d.account_name,
        "accountNo": d.account_no,
        "ifscCode": d.ifsc_code,
        "updatedAt": _iso(d.updated_at),
    }


def crypto_details_out(d: CryptoDetails) -> dict[str, Any]:
    return {
        "walletAddress": d.wallet_address,
        "currencyName": d.currency_name,
        "updatedAt": _iso(d.updated_at),
    }
