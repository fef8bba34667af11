from fastapi import APIRouter, Depends, File, UploadFile

from payoutdesk.core.exceptions import BadRequestError
from payoutdesk.deps import get_qr_service
from payoutdesk.models.qr_image import QrImage
from payoutdesk.services.qr import QrImageService

router = APIRouter()


def _qr_out(image: QrImage, qr: QrImageService) -> dict:
    return {
        "id": image.id,
        "filename": image.filename,
        "filepath": image.filepath,
        "url": qr.url_for(image),
        "mimetype": image.mimetype,
        "size": image.size,
        "createdAt": image.created_at.isoformat(),
    }


@router.get("")
async def get_qr_image(qr: QrImageService = Depends(get_qr_service)):
    image = await qr.get_qr_image()
    if not image:
        return {"exists": False}
    return {"exists": True, **_qr_out(image, qr)}


@router.patch("")
async def replace_qr_image(
    qr_image: UploadFile | None = File(default=None, alias="qrImage"),
    qr: QrImageService = Depends(get_qr_service),
):
    """Multipart upload under field qrImage; replaces the stored QR code."""
    if qr_image is None:
        raise BadRequestError("No file uploaded")
    # one byte past the limit is enough for the size check to reject it
    content = await qr_image.read(qr.max_bytes + 1)
    image = await qr.replace_qr_image(content, qr_image.filename, qr_image.content_type)
    return _qr_out(image, qr)
