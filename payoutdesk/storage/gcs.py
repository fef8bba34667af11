import asyncio
from typing import BinaryIO

from google.cloud import storage

from payoutdesk.storage.base import StorageBackend


class GCSStorage(StorageBackend):
    def __init__(self, bucket_name: str) -> None:
        self.bucket_name = bucket_name
        self._client = storage.Client()
        self._bucket = self._client.bucket(self.bucket_name)

    def _put(self, key: str, body: BinaryIO | bytes, content_type: str) -> None:
        blob = self._bucket.blob(key)
        if isinstance(body, bytes):
            blob.upload_from_string(body, content_type=content_type)
        else:
            blob.upload_from_file(body, content_type=content_type)

    def _get(self, key: str) -> bytes:
        blob = self._bucket.blob(key)
        if not blob.exists():
            raise FileNotFoundError(key)
        return blob.download_as_bytes()

    def _delete(self, key: str) -> None:
        blob = self._bucket.blob(key)
        if blob.exists():
            blob.delete()

    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        await asyncio.to_thread(self._put, key, body, content_type or "application/octet-stream")
        return f"gs://{self.bucket_name}/{key}"

    async def get(self, key: str) -> bytes:
        return await asyncio.to_thread(self._get, key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    def url_for(self, key: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/{key}"
