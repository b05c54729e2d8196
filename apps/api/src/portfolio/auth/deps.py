from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio import config
from portfolio.auth.jwt import InvalidTokenError, TokenClaims, decode_token

_security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> TokenClaims:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        return decode_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def require_admin(current_user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    if current_user.username != config.ADMIN_USERNAME:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
