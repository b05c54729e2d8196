from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator

from portfolio.auth.deps import get_current_user, require_admin
from portfolio.auth.jwt import TokenClaims
from portfolio.config import (
    LATEST_PROJECTS_DEFAULT_LIMIT,
    LATEST_PROJECTS_MAX_LIMIT,
    PAGINATION_MAX_LIMIT,
    PROJECT_DEFAULT_PAGE_SIZE,
)
from portfolio.projects import (
    ProjectFilters,
    create_project,
    delete_project,
    get_project,
    get_project_by_slug,
    latest_projects,
    list_all_projects,
    list_projects,
    list_stacks,
    list_tags,
    update_project,
)
from portfolio.v1.envelope import DataEnvelope, SuccessResponse, validate_http_url, validate_slug

router = APIRouter()


class ProjectResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    description: str | None
    tag: str
    stack: list[str]
    github_url: str | None
    live_url: str | None
    cover_image: str | None
    created_at: datetime
    updated_at: datetime


def _clean_stack(values: list[str]) -> list[str]:
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class ProjectCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    slug: str
    description: str | None = None
    tag: str = Field(min_length=1)
    stack: list[str] = []
    github_url: str | None = None
    live_url: str | None = None
    cover_image: str | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        return validate_slug(v)

    @field_validator("stack")
    @classmethod
    def check_stack(cls, v: list[str]) -> list[str]:
        return _clean_stack(v)

    @field_validator("github_url", "live_url", "cover_image")
    @classmethod
    def check_urls(cls, v: str | None) -> str | None:
        return validate_http_url(v) if v is not None else None


class ProjectUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    tag: str | None = Field(default=None, min_length=1)
    stack: list[str] | None = None
    github_url: str | None = None
    live_url: str | None = None
    cover_image: str | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str | None) -> str | None:
        return validate_slug(v) if v is not None else None

    @field_validator("stack")
    @classmethod
    def check_stack(cls, v: list[str] | None) -> list[str] | None:
        return _clean_stack(v) if v is not None else None

    @field_validator("github_url", "live_url", "cover_image")
    @classmethod
    def check_urls(cls, v: str | None) -> str | None:
        return validate_http_url(v) if v is not None else None


def _to_response(project) -> ProjectResponse:
    return ProjectResponse(**project.__dict__)


@router.get("/projects", response_model=DataEnvelope[list[ProjectResponse]])
def projects(
    limit: int = Query(default=PROJECT_DEFAULT_PAGE_SIZE, ge=1, le=PAGINATION_MAX_LIMIT),
    page: int = Query(default=1, ge=1),
    tag: str | None = Query(default=None, min_length=1),
    stack: str | None = Query(default=None, min_length=1),
):
    result = list_projects(ProjectFilters(tag=tag, stack=stack), page=page, page_size=limit)
    return DataEnvelope(
        data=[_to_response(item) for item in result.items],
        meta={
            "total": result.total,
            "page": result.page,
            "page_size": result.page_size,
            "total_pages": result.total_pages,
        },
    )


@router.get("/projects/tags", response_model=DataEnvelope[list[str]])
def project_tags():
    return DataEnvelope(data=list_tags())


@router.get("/projects/stacks", response_model=DataEnvelope[list[str]])
def project_stacks():
    return DataEnvelope(data=list_stacks())


@router.get("/projects/latest", response_model=DataEnvelope[list[ProjectResponse]])
def projects_latest(
    limit: int = Query(default=LATEST_PROJECTS_DEFAULT_LIMIT, ge=1, le=LATEST_PROJECTS_MAX_LIMIT),
):
    return DataEnvelope(data=[_to_response(item) for item in latest_projects(limit)])


@router.get("/projects/by-slug/{slug}", response_model=DataEnvelope[ProjectResponse])
def project_by_slug(slug: str):
    return DataEnvelope(data=_to_response(get_project_by_slug(slug)))


@router.get("/admin/projects", response_model=DataEnvelope[list[ProjectResponse]])
def admin_list_projects(_user: TokenClaims = Depends(get_current_user)):
    return DataEnvelope(data=[_to_response(item) for item in list_all_projects()])


@router.get("/admin/projects/{project_id}", response_model=DataEnvelope[ProjectResponse])
def admin_get_project(project_id: UUID, _user: TokenClaims = Depends(get_current_user)):
    return DataEnvelope(data=_to_response(get_project(project_id)))


@router.post("/admin/projects", response_model=DataEnvelope[ProjectResponse], status_code=201)
def admin_create_project(payload: ProjectCreateRequest, _admin: TokenClaims = Depends(require_admin)):
    project = create_project(**payload.model_dump())
    return DataEnvelope(data=_to_response(project))


@router.patch("/admin/projects/{project_id}", response_model=DataEnvelope[ProjectResponse])
def admin_update_project(
    project_id: UUID,
    payload: ProjectUpdateRequest,
    _admin: TokenClaims = Depends(require_admin),
):
    patch = payload.model_dump(exclude_unset=True, exclude_none=True)
    return DataEnvelope(data=_to_response(update_project(project_id, patch)))


@router.delete("/admin/projects/{project_id}", response_model=DataEnvelope[SuccessResponse])
def admin_delete_project(project_id: UUID, _admin: TokenClaims = Depends(require_admin)):
    delete_project(project_id)
    return DataEnvelope(data=SuccessResponse())
