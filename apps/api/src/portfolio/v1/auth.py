from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from portfolio import config
from portfolio.auth.db import InvalidCredentialsError, authenticate_admin
from portfolio.auth.deps import get_current_user
from portfolio.auth.jwt import TokenClaims, create_access_token
from portfolio.rate_limit import limiter, login_rate_limit
from portfolio.v1.envelope import DataEnvelope

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=1, max_length=1024)


class CurrentUserResponse(BaseModel):
    id: UUID
    username: str
    is_admin: bool


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: int
    user: CurrentUserResponse


@router.post("/auth/login", response_model=DataEnvelope[TokenResponse])
@limiter.limit(login_rate_limit)
def login(request: Request, payload: LoginRequest):
    try:
        user = authenticate_admin(username=payload.username, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    token, expires_at = create_access_token(user_id=user.id, username=user.username)
    return DataEnvelope(
        data=TokenResponse(
            access_token=token,
            expires_at=expires_at,
            user=CurrentUserResponse(
                id=user.id,
                username=user.username,
                is_admin=user.username == config.ADMIN_USERNAME,
            ),
        )
    )


@router.get("/auth/me", response_model=DataEnvelope[CurrentUserResponse])
def me(current_user: TokenClaims = Depends(get_current_user)):
    return DataEnvelope(
        data=CurrentUserResponse(
            id=current_user.user_id,
            username=current_user.username,
            is_admin=current_user.username == config.ADMIN_USERNAME,
        )
    )
