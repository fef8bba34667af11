import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from payoutdesk.core.etag import ETagMiddleware
from payoutdesk.main import app


def test_enabled_outside_production(settings):
    assert not settings.is_production
    assert any(m.cls is ETagMiddleware for m in app.user_middleware)


@pytest.mark.asyncio
async def test_get_has_etag_and_revalidates(client):
    r = await client.get("/api/price")
    assert r.status_code == 200
    etag = r.headers["ETag"]
    assert etag.startswith('"') and etag.endswith('"')

    r = await client.get("/api/price", headers={"If-None-Match": etag})
    assert r.status_code == 304
    assert r.content == b""
    assert r.headers["ETag"] == etag
    assert r.headers["X-Request-ID"]

    r = await client.get("/api/price", headers={"If-None-Match": f'"stale", W/{etag}'})
    assert r.status_code == 304


@pytest.mark.asyncio
async def test_etag_changes_with_content(client):
    first = (await client.get("/api/price")).headers["ETag"]
    r = await client.patch("/api/price", json={"price": "84.25"})
    assert r.status_code == 200
    assert "etag" not in r.headers

    r = await client.get("/api/price", headers={"If-None-Match": first})
    assert r.status_code == 200
    assert r.json()["price"] == "84.25"
    assert r.headers["ETag"] != first


@pytest.mark.asyncio
async def test_errors_get_no_etag(client):
    r = await client.get("/api/users/me")
    assert r.status_code == 401
    assert "etag" not in r.headers


def test_middleware_on_plain_app():
    plain = FastAPI()
    plain.add_middleware(ETagMiddleware)

    @plain.get("/items")
    async def items():
        return {"items": [1, 2, 3]}

    @plain.post("/items")
    async def create_item():
        return {"id": 4}

    with TestClient(plain) as c:
        r = c.get("/items")
        assert r.json() == {"items": [1, 2, 3]}
        assert r.headers["content-type"] == "application/json"
        assert int(r.headers["content-length"]) == len(r.content)
        assert c.get("/items", headers={"If-None-Match": "*"}).status_code == 304
        assert c.get("/items", headers={"If-None-Match": r.headers["ETag"]}).status_code == 304
        assert "etag" not in c.post("/items").headers
