from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from uuid import UUID

import jwt

from portfolio.config import JWT_ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY


class InvalidTokenError(ValueError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    username: str
    expires_at: int


def create_access_token(*, user_id: UUID, username: str) -> tuple[str, int]:
    now = int(time.time())
    exp = now + JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60
    payload = {
        "sub": str(user_id),
        "username": username,
        "iat": now,
        "exp": exp,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM), exp


def decode_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError("Invalid token") from exc

    subject = payload.get("sub")
    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise InvalidTokenError("Invalid token username")
    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise InvalidTokenError("Invalid token subject") from exc

    return TokenClaims(user_id=user_id, username=username, expires_at=int(payload["exp"]))
