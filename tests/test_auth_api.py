import pytest

pytestmark = pytest.mark.asyncio

SIGN_UP = {
    "name": "Asha",
    "email": "Asha@Example.com",
    "password": "correct-horse",
    "phoneNumber": "+911234567890",
    "referralCode": "FRIEND10",
}


async def test_sign_up_sets_session(client):
    r = await client.post("/api/auth/sign-up/email", json=SIGN_UP)
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["email"] == "asha@example.com"
    assert body["user"]["phoneNumber"] == "+911234567890"
    assert body["user"]["referralCode"] == "FRIEND10"
    assert body["user"]["balance"] == "0.00"
    assert "payoutdesk_session=" in r.headers["set-cookie"]

    r = await client.get("/api/auth/get-session", headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == body["user"]["id"]


async def test_cookie_session(client):
    r = await client.post("/api/auth/sign-up/email", json=SIGN_UP)
    token = r.json()["token"]
    r = await client.get("/api/users/me", headers={"Cookie": f"payoutdesk_session={token}"})
    assert r.status_code == 200
    assert r.json()["email"] == "asha@example.com"


async def test_cookie_session_next_to_foreign_cookies(client):
    r = await client.post("/api/auth/sign-up/email", json=SIGN_UP)
    token = r.json()["token"]
    cookie = f'prefs={{"theme":"dark"}}; _ga=GA1.2.3; payoutdesk_session={token}'
    r = await client.get("/api/users/me", headers={"Cookie": cookie})
    assert r.status_code == 200
    assert r.json()["email"] == "asha@example.com"


async def test_duplicate_email_conflict(client):
    assert (await client.post("/api/auth/sign-up/email", json=SIGN_UP)).status_code == 200
    r = await client.post("/api/auth/sign-up/email", json={**SIGN_UP, "email": "asha@example.com"})
    assert r.status_code == 409


@pytest.mark.parametrize(
    "payload",
    [
        {**SIGN_UP, "email": "not-an-email"},
        {**SIGN_UP, "password": "short"},
        {**SIGN_UP, "phoneNumber": 12345},
        {},
    ],
)
async def test_sign_up_validation(client, payload):
    r = await client.post("/api/auth/sign-up/email", json=payload)
    assert r.status_code == 400


async def test_sign_in(client):
    await client.post("/api/auth/sign-up/email", json=SIGN_UP)
    r = await client.post("/api/auth/sign-in/email", json={"email": "asha@example.com", "password": "correct-horse"})
    assert r.status_code == 200
    assert r.json()["token"]

    r = await client.post("/api/auth/sign-in/email", json={"email": "asha@example.com", "password": "wrong-horse"})
    assert r.status_code == 401
    r = await client.post("/api/auth/sign-in/email", json={"email": "nobody@example.com", "password": "whatever1"})
    assert r.status_code == 401


@pytest.mark.parametrize("stored_hash", ["", "not-a-hash", "scrypt$16384$8$1$00$00"])
async def test_sign_in_with_unreadable_hash_is_401(client, store, stored_hash):
    from payoutdesk.models.user import User

    await store.create_user(User(email="legacy@example.com", password_hash=stored_hash))
    r = await client.post("/api/auth/sign-in/email", json={"email": "legacy@example.com", "password": "password123"})
    assert r.status_code == 401


async def test_get_session_without_token_is_null(client):
    r = await client.get("/api/auth/get-session")
    assert r.status_code == 200
    assert r.json() is None


async def test_sign_out_invalidates_token(client):
    token = (await client.post("/api/auth/sign-up/email", json=SIGN_UP)).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}
    r = await client.post("/api/auth/sign-out", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r = await client.get("/api/users/me", headers=headers)
    assert r.status_code == 401
    assert (await client.get("/api/auth/get-session", headers=headers)).json() is None


async def test_delete_user(client, store):
    body = (await client.post("/api/auth/sign-up/email", json=SIGN_UP)).json()
    headers = {"Authorization": f"Bearer {body['token']}"}

    r = await client.post("/api/auth/delete-user", json={"password": "nope-nope"}, headers=headers)
    assert r.status_code == 401
    r = await client.post("/api/auth/delete-user", json={"password": "correct-horse"}, headers=headers)
    assert r.status_code == 200
    assert await store.get_user(body["user"]["id"]) is None


async def test_balance_override_requires_admin(client, make_user, auth_headers):
    user = await make_user("5.00")
    admin = await make_user(role="admin")

    r = await client.patch(f"/api/users/{user.id}/balance", json={"balance": 50})
    assert r.status_code == 401
    r = await client.patch(f"/api/users/{user.id}/balance", json={"balance": 50}, headers=auth_headers(user))
    assert r.status_code == 403

    r = await client.patch(f"/api/users/{user.id}/balance", json={"balance": 50}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["balance"] == "50.00"
    assert r.json()["id"] == user.id
    assert "password_hash" not in r.json()


async def test_balance_override_errors(client, make_user, auth_headers):
    admin = await make_user(role="admin")
    user = await make_user("5.00")
    headers = auth_headers(admin)

    r = await client.patch(f"/api/users/{user.id}/balance", json={"balance": "x"}, headers=headers)
    assert r.status_code == 400
    r = await client.patch(f"/api/users/{user.id}/balance", json={}, headers=headers)
    assert r.status_code == 400
    r = await client.patch("/api/users/ffffffffffffffffffffffff/balance", json={"balance": 1}, headers=headers)
    assert r.status_code == 404
