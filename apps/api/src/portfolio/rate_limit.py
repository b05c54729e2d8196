from __future__ import annotations

import os

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from portfolio.auth.jwt import InvalidTokenError, decode_token
from portfolio.config import DEFAULT_RATE_LIMIT_LOGIN, RATE_LIMIT_DEFAULT


def _rate_limit_key(request: Request) -> str:
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            try:
                claims = decode_token(token)
            except InvalidTokenError:
                claims = None
            if claims is not None:
                return f"user:{claims.user_id}"

    return get_remote_address(request)


def login_rate_limit() -> str:
    return os.getenv("RATE_LIMIT_LOGIN", DEFAULT_RATE_LIMIT_LOGIN)


limiter = Limiter(key_func=_rate_limit_key, default_limits=[RATE_LIMIT_DEFAULT])
