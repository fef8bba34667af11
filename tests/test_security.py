import pytest

from payoutdesk.core.security import (
    create_session_token,
    hash_password,
    load_session_token,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("correct-horse")
    assert hashed.startswith("$2b$")
    assert hashed != hash_password("correct-horse")
    assert verify_password("correct-horse", hashed)
    assert not verify_password("wrong-horse", hashed)


@pytest.mark.parametrize("stored", ["", "not-a-hash", "scrypt$16384$8$1$00$00", "$2b$12$truncated"])
def test_unreadable_hash_never_verifies(stored):
    assert verify_password("correct-horse", stored) is False


def test_session_token_roundtrip():
    token = create_session_token({"user_id": "abc", "session_version": 2})
    assert load_session_token(token, max_age_seconds=60) == {"user_id": "abc", "session_version": 2}
    assert load_session_token(token + "x", max_age_seconds=60) is None
