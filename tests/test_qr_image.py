"""QR image replacement ordering: write new, commit record, delete old."""

import pytest

from payoutdesk.core.exceptions import BadRequestError, StorageUnavailableError
from payoutdesk.db.memory import MemoryRecordStore
from payoutdesk.services.qr import QrImageService, qr_filename
from payoutdesk.storage.local import LocalStorage

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG = b"\xff\xd8\xff\xe0" + b"\x01" * 32


@pytest.fixture
def local_storage(tmp_path):
    return LocalStorage(tmp_path / "uploads")


@pytest.fixture
def qr(settings, local_storage):
    return QrImageService(MemoryRecordStore(), local_storage, settings)


def test_qr_filename():
    assert qr_filename("My Code.PNG") == "qr-code.png"
    assert qr_filename("scan.jpeg") == "qr-code.jpeg"
    assert qr_filename("noext") == "qr-code.png"
    assert qr_filename(None) == "qr-code.png"
    assert qr_filename("weird.p/ng") == "qr-code.png"


@pytest.mark.asyncio
async def test_get_qr_image_empty(qr):
    assert await qr.get_qr_image() is None


@pytest.mark.asyncio
async def test_replace_removes_old_file(qr, local_storage):
    first = await qr.replace_qr_image(PNG, "first.png", "image/png")
    assert await local_storage.get(first.filepath) == PNG
    assert first.filename == "qr-code.png"
    assert first.size == len(PNG)

    second = await qr.replace_qr_image(JPEG, "second.jpg", "image/jpeg")
    assert second.filename == "qr-code.jpg"
    assert second.filepath != first.filepath
    assert await local_storage.get(second.filepath) == JPEG
    with pytest.raises(FileNotFoundError):
        await local_storage.get(first.filepath)

    current = await qr.get_qr_image()
    assert current.id == second.id


@pytest.mark.asyncio
async def test_replace_with_same_extension_keeps_new_file(qr, local_storage):
    await qr.replace_qr_image(PNG, "a.png", "image/png")
    second = await qr.replace_qr_image(PNG + b"2", "b.png", "image/png")
    assert await local_storage.get(second.filepath) == PNG + b"2"


@pytest.mark.parametrize(
    "content,mimetype",
    [(b"", "image/png"), (PNG, "text/plain"), (PNG, None)],
)
@pytest.mark.asyncio
async def test_replace_rejects_bad_uploads(qr, content, mimetype):
    with pytest.raises(BadRequestError):
        await qr.replace_qr_image(content, "x.png", mimetype)
    assert await qr.get_qr_image() is None


@pytest.mark.asyncio
async def test_replace_rejects_oversized(settings, local_storage):
    qr = QrImageService(MemoryRecordStore(), local_storage, settings.model_copy(update={"qr_max_bytes": 8}))
    with pytest.raises(BadRequestError):
        await qr.replace_qr_image(PNG, "x.png", "image/png")


class FailingWriteStorage(LocalStorage):
    fail = False

    async def put(self, key, body, content_type=None):
        if self.fail:
            raise OSError("disk full")
        return await super().put(key, body, content_type)


@pytest.mark.asyncio
async def test_failed_write_keeps_old_file_and_record(settings, tmp_path):
    storage = FailingWriteStorage(tmp_path / "uploads")
    qr = QrImageService(MemoryRecordStore(), storage, settings)
    old = await qr.replace_qr_image(PNG, "old.png", "image/png")

    storage.fail = True
    with pytest.raises(StorageUnavailableError):
        await qr.replace_qr_image(JPEG, "new.jpg", "image/jpeg")

    assert (await qr.get_qr_image()).id == old.id
    assert await storage.get(old.filepath) == PNG


class FailingCommitStore(MemoryRecordStore):
    fail = False

    async def upsert_singleton(self, kind, data):
        if self.fail:
            raise StorageUnavailableError()
        return await super().upsert_singleton(kind, data)


@pytest.mark.asyncio
async def test_failed_commit_discards_new_file(settings, local_storage):
    store = FailingCommitStore()
    qr = QrImageService(store, local_storage, settings)
    old = await qr.replace_qr_image(PNG, "old.png", "image/png")

    store.fail = True
    with pytest.raises(StorageUnavailableError):
        await qr.replace_qr_image(JPEG, "new.jpg", "image/jpeg")

    assert (await qr.get_qr_image()).id == old.id
    assert await local_storage.get(old.filepath) == PNG
    qr_dir = local_storage.root / "qr"
    assert [p.name for p in qr_dir.iterdir()] == [old.filepath.split("/")[-1]]


@pytest.mark.asyncio
async def test_qr_api_roundtrip(client):
    r = await client.get("/api/qr-image")
    assert r.status_code == 200
    assert r.json() == {"exists": False}

    r = await client.patch("/api/qr-image", files={"qrImage": ("code.png", PNG, "image/png")})
    assert r.status_code == 200
    meta = r.json()
    assert meta["filename"] == "qr-code.png"
    assert meta["url"].startswith("/uploads/qr/")

    r = await client.get("/api/qr-image")
    assert r.json()["exists"] is True
    assert r.json()["id"] == meta["id"]

    served = await client.get(meta["url"])
    assert served.status_code == 200
    assert served.content == PNG

    r = await client.patch("/api/qr-image", files={"qrImage": ("code.jpg", JPEG, "image/jpeg")})
    assert r.status_code == 200
    assert (await client.get(meta["url"])).status_code == 404
    assert (await client.get(r.json()["url"])).content == JPEG


@pytest.mark.asyncio
async def test_qr_api_missing_file(client):
    r = await client.patch("/api/qr-image", files={"other": ("code.png", PNG, "image/png")})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_qr_api_reads_at_most_one_byte_past_limit(client, monkeypatch):
    from payoutdesk.deps import get_qr_service

    service = get_qr_service()
    service.max_bytes = 8
    seen = []
    replace = service.replace_qr_image

    async def recording_replace(content, original_name, mimetype):
        seen.append(len(content))
        return await replace(content, original_name, mimetype)

    monkeypatch.setattr(service, "replace_qr_image", recording_replace)

    r = await client.patch("/api/qr-image", files={"qrImage": ("code.png", PNG, "image/png")})
    assert r.status_code == 400
    assert r.json()["details"] == {"max_bytes": 8}
    assert seen == [9]
    assert (await client.get("/api/qr-image")).json() == {"exists": False}
