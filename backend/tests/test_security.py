from datetime import timedelta

import pytest
from jose import JWTError

from app.core.security import create_access_token, decode_token, get_password_hash, verify_password


def test_password_hash_round_trip():
    hashed = get_password_hash("password123")

    assert hashed.startswith("pbkdf2_sha256$")
    assert hashed != get_password_hash("password123")
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


@pytest.mark.parametrize("stored", ["", "plain-text", "md5$1$abc$def", "pbkdf2_sha256$x$!!$??"])
def test_malformed_hashes_never_verify(stored):
    assert verify_password("password123", stored) is False


def test_expired_token_is_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))

    with pytest.raises(JWTError):
        decode_token(token)

    assert decode_token(create_access_token("user-1"))["sub"] == "user-1"
