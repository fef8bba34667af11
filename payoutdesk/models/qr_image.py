from datetime import datetime

from pydantic import BaseModel, Field

from payoutdesk.models.types import new_id, utcnow

QR_IMAGE_KIND = "qr_image"


class QrImage(BaseModel):
    id: str = Field(default_factory=new_id)
    filename: str
    filepath: str  # storage key; file bytes live in the side file store
    mimetype: str
    size: int
    created_at: datetime = Field(default_factory=utcnow)
