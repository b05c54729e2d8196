from __future__ import annotations

import math

from portfolio.projects.types import ProjectFilters


def build_where(filters: ProjectFilters) -> tuple[str, dict[str, object]]:
    clauses: list[str] = []
    params: dict[str, object] = {}

    if filters.tag:
        clauses.append("tag = :tag")
        params["tag"] = filters.tag

    if filters.stack:
        clauses.append(":stack = ANY(stack)")
        params["stack"] = filters.stack

    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


def page_offset(page: int, page_size: int) -> int:
    if page < 1:
        raise ValueError("page must be >= 1")
    return (page - 1) * page_size


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0
