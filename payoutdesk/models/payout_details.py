from datetime import datetime

from pydantic import BaseModel


class BankDetails(BaseModel):
    kind: str = "bank_details"
    bank_name: str = ""
    account_name: str = ""
    account_no: str = ""
    ifsc_code: str = ""
    updated_at: datetime | None = None


class CryptoDetails(BaseModel):
    kind: str = "crypto_details"
    wallet_address: str = ""
    currency_name: str = ""
    updated_at: datetime | None = None
