from abc import ABC, abstractmethod
from typing import BinaryIO

from payoutdesk.core.config import Settings


class StorageBackend(ABC):
    @abstractmethod
    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        """Store file; return path or URI."""
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Retrieve file bytes. FileNotFoundError if absent."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete file; missing files are ignored."""
        ...

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Public URL the client fetches the file from."""
        ...


def get_storage(settings: Settings) -> StorageBackend:
    if settings.storage_backend == "gcs":
        from payoutdesk.storage.gcs import GCSStorage
        return GCSStorage(settings.gcs_bucket_name or "payoutdesk-uploads")
    from payoutdesk.storage.local import LocalStorage
    return LocalStorage(settings.storage_local_path)
