from payoutdesk.models.payout_details import BankDetails, CryptoDetails
from payoutdesk.models.price_quote import PriceQuote
from payoutdesk.models.qr_image import QrImage
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest

__all__ = [
    "BankDetails",
    "CryptoDetails",
    "PriceQuote",
    "QrImage",
    "User",
    "WithdrawRequest",
]
