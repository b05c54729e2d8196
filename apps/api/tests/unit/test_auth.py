import time
import uuid

import jwt
import pytest

from portfolio.auth.jwt import InvalidTokenError, create_access_token, decode_token
from portfolio.auth.passwords import WeakPasswordError, hash_password, verify_password
from portfolio.config import JWT_ALGORITHM, JWT_SECRET_KEY


def test_hash_password_round_trip() -> None:
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_hash_password_rejects_short_passwords() -> None:
    with pytest.raises(WeakPasswordError):
        hash_password("short")


def test_access_token_carries_user_claims() -> None:
    user_id = uuid.uuid4()
    token, expires_at = create_access_token(user_id=user_id, username="admin")

    claims = decode_token(token)
    assert claims.user_id == user_id
    assert claims.username == "admin"
    assert claims.expires_at == expires_at
    assert expires_at > time.time()


def test_decode_token_rejects_tampered_signature() -> None:
    token, _ = create_access_token(user_id=uuid.uuid4(), username="admin")
    with pytest.raises(InvalidTokenError):
        decode_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))


def test_decode_token_rejects_expired_token() -> None:
    payload = {"sub": str(uuid.uuid4()), "username": "admin", "exp": int(time.time()) - 10}
    token = jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_token(token)


def test_decode_token_requires_username_and_uuid_subject() -> None:
    exp = int(time.time()) + 60
    no_username = jwt.encode({"sub": str(uuid.uuid4()), "exp": exp}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    bad_subject = jwt.encode(
        {"sub": "42", "username": "admin", "exp": exp}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM
    )

    with pytest.raises(InvalidTokenError):
        decode_token(no_username)
    with pytest.raises(InvalidTokenError):
        decode_token(bad_subject)
