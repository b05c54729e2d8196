from __future__ import annotations

import re
from typing import Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, HttpUrl, TypeAdapter, ValidationError

from portfolio.config import SLUG_MAX_LENGTH


T = TypeVar("T")

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_HTTP_URL = TypeAdapter(HttpUrl)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL",
    502: "UPSTREAM_ERROR",
}


class DataEnvelope(BaseModel, Generic[T]):
    data: T
    meta: dict[str, object] | None = None


class SuccessResponse(BaseModel):
    success: bool = True


def error_code_for_status(status_code: int) -> str:
    return ERROR_CODES.get(status_code, "INTERNAL" if status_code >= 500 else "BAD_REQUEST")


def error_response(
    status_code: int,
    message: str,
    *,
    code: str | None = None,
    details: object | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error: dict[str, object] = {
        "code": code or error_code_for_status(status_code),
        "message": message,
    }
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def validate_slug(value: str) -> str:
    value = value.strip()
    if not value or len(value) > SLUG_MAX_LENGTH:
        raise ValueError(f"Slug must be between 1 and {SLUG_MAX_LENGTH} characters")
    if not SLUG_PATTERN.match(value):
        raise ValueError("Slug must be lowercase alphanumeric with hyphens")
    return value


def validate_http_url(value: str) -> str:
    value = value.strip()
    if len(value) > 2048:
        raise ValueError("url must not exceed 2048 characters")
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as exc:
        raise ValueError("url must be an absolute http or https URL") from exc
    return value


def validate_github_path(value: str) -> str:
    value = value.strip().strip("/")
    if not value:
        raise ValueError("github_path must not be empty")
    if any(segment in {"", ".", ".."} for segment in value.split("/")):
        raise ValueError("github_path must be a repository-relative file path")
    return value
