"""QR image replacement: write new file, commit record, then delete the old file."""

import re
from pathlib import PurePath

from payoutdesk.core.config import Settings
from payoutdesk.core.exceptions import BadRequestError, StorageUnavailableError
from payoutdesk.core.logging import get_logger
from payoutdesk.db.base import RecordStore, call_store
from payoutdesk.models.qr_image import QR_IMAGE_KIND, QrImage
from payoutdesk.models.types import utcnow
from payoutdesk.storage.base import StorageBackend

log = get_logger(__name__)

QR_BASENAME = "qr-code"
DEFAULT_EXTENSION = "png"
_EXT_RE = re.compile(r"^[a-z0-9]{1,10}$")


def qr_filename(original_name: str | None) -> str:
    """qr-code.<ext>, keeping the upload's extension when it is sane."""
    ext = PurePath(original_name or "").suffix.lower().lstrip(".")
    if not _EXT_RE.match(ext):
        ext = DEFAULT_EXTENSION
    return f"{QR_BASENAME}.{ext}"


class QrImageService:
    def __init__(self, store: RecordStore, storage: StorageBackend, settings: Settings) -> None:
        self.store = store
        self.storage = storage
        self.timeout = settings.store_timeout_seconds
        self.read_attempts = settings.store_read_attempts
        self.max_bytes = settings.qr_max_bytes

    async def get_qr_image(self) -> QrImage | None:
        data = await call_store(
            lambda: self.store.get_singleton(QR_IMAGE_KIND),
            op="get_singleton",
            timeout=self.timeout,
            attempts=self.read_attempts,
        )
        return QrImage.model_validate(data) if data else None

    def url_for(self, image: QrImage) -> str:
        return self.storage.url_for(image.filepath)

    async def replace_qr_image(self, content: bytes, original_name: str | None, mimetype: str | None) -> QrImage:
        if not content:
            raise BadRequestError("No file uploaded")
        if len(content) > self.max_bytes:
            raise BadRequestError("File too large", details={"max_bytes": self.max_bytes})
        if not mimetype or not mimetype.startswith("image/"):
            raise BadRequestError("File must be an image")

        filename = qr_filename(original_name)
        now = utcnow()
        # Versioned key: the new file never overwrites the old one before the record commits.
        key = f"qr/{now.strftime('%Y%m%d%H%M%S%f')}-{filename}"
        try:
            await self.storage.put(key, content, content_type=mimetype)
        except Exception as e:
            log.exception("qr_write_failed", key=key)
            raise StorageUnavailableError("Failed to store file") from e

        image = QrImage(filename=filename, filepath=key, mimetype=mimetype, size=len(content), created_at=now)
        try:
            previous, _ = await call_store(
                lambda: self.store.upsert_singleton(QR_IMAGE_KIND, image.model_dump()),
                op="upsert_singleton",
                timeout=self.timeout,
            )
        except BaseException:
            log.error("qr_record_commit_failed", key=key)
            await self._discard(key)
            raise

        if previous and previous.get("filepath") and previous["filepath"] != key:
            await self._discard(previous["filepath"])
        log.info("qr_image_replaced", key=key, size=image.size, mimetype=mimetype)
        return image

    async def _discard(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except Exception:
            # orphaned file only; the record already points at the right one
            log.exception("qr_file_delete_failed", key=key)
