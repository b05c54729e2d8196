import logging
import random
import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio.config import (
    FRONTEND_ORIGINS,
    GITHUB_TIMEOUT_S,
    LOG_REQUEST_SAMPLE_RATE,
    LOG_SLOW_REQUEST_MS,
    MAX_REQUEST_BODY_BYTES,
    SECURITY_HEADERS_ENABLED,
    config_warnings,
)
from portfolio.content import build_content_service
from portfolio.db import dispose_engine
from portfolio.errors import PortfolioError
from portfolio.logging_config import configure_logging
from portfolio.rate_limit import limiter
from portfolio.v1.envelope import error_response
from portfolio.v1.main import router as v1_router

configure_logging()
logger = logging.getLogger("portfolio")
request_logger = logging.getLogger("portfolio.request")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    for warning in config_warnings():
        logger.warning("config_warning", extra={"detail": warning})

    async with httpx.AsyncClient(timeout=GITHUB_TIMEOUT_S) as http:
        app.state.content_service = build_content_service(http)
        yield

    dispose_engine()


app = FastAPI(title="Portfolio API", lifespan=lifespan)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            size = int(content_length)
        except ValueError:
            return error_response(400, "Invalid Content-Length header")
        if size > MAX_REQUEST_BODY_BYTES:
            return error_response(413, f"Request body exceeds {MAX_REQUEST_BODY_BYTES} bytes")
    return await call_next(request)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if SECURITY_HEADERS_ENABLED:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id

    slow = duration_ms >= LOG_SLOW_REQUEST_MS
    sampled = random.random() < LOG_REQUEST_SAMPLE_RATE
    if slow or sampled or response.status_code >= 500:
        request_logger.info(
            "http_request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "request_id": request_id,
                "client": request.client.host if request.client else None,
                "slow": slow,
                "sampled": sampled,
            },
        )
    return response


@app.exception_handler(PortfolioError)
async def handle_portfolio_error(request: Request, exc: PortfolioError):
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            exc_info=exc,
            extra={"path": request.url.path, "error_code": exc.code},
        )
    return error_response(exc.status_code, exc.message, code=exc.code)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return error_response(
        422,
        "Request validation failed",
        details=jsonable_encoder(exc.errors(), exclude={"ctx", "input", "url"}),
    )


@app.exception_handler(RateLimitExceeded)
def handle_rate_limited(request: Request, exc: RateLimitExceeded):
    return error_response(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("unhandled_error", exc_info=exc, extra={"path": request.url.path})
    return error_response(500, "Internal server error")


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
