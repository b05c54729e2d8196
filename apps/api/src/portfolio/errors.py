"""Domain error hierarchy.

Every error carries the envelope ``code`` and HTTP status it is reported
with, so route handlers can let them propagate and the app-level handler
renders them uniformly.
"""

from __future__ import annotations

from psycopg.errors import UniqueViolation
from sqlalchemy.exc import IntegrityError


class PortfolioError(Exception):
    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PortfolioError, LookupError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(PortfolioError, ValueError):
    code = "CONFLICT"
    status_code = 409


class BadRequestError(PortfolioError, ValueError):
    code = "BAD_REQUEST"
    status_code = 400


class UpstreamError(PortfolioError, RuntimeError):
    code = "UPSTREAM_ERROR"
    status_code = 502


class ConfigurationError(PortfolioError, RuntimeError):
    code = "INTERNAL"
    status_code = 500


class PostNotFoundError(NotFoundError):
    pass


class ProjectNotFoundError(NotFoundError):
    pass


class SlugConflictError(ConflictError):
    pass


def is_unique_violation(exc: IntegrityError) -> bool:
    return isinstance(exc.orig, UniqueViolation)
