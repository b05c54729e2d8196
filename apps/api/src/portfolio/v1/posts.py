from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from starlette.concurrency import run_in_threadpool

from portfolio.auth.deps import get_current_user, require_admin
from portfolio.auth.jwt import TokenClaims
from portfolio.config import BLOG_DEFAULT_PAGE_SIZE, PAGINATION_MAX_LIMIT
from portfolio.content import ContentService
from portfolio.posts import (
    create_post,
    delete_post,
    get_post,
    get_published_post_by_slug,
    list_all_posts,
    list_published_posts,
    update_post,
)
from portfolio.v1.deps import get_content_service
from portfolio.v1.envelope import (
    DataEnvelope,
    SuccessResponse,
    validate_github_path,
    validate_http_url,
    validate_slug,
)

router = APIRouter()


class PostResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    description: str | None
    github_path: str
    cover_image: str | None
    published_at: datetime | None
    author_id: UUID
    created_at: datetime
    updated_at: datetime


class PostDetailResponse(PostResponse):
    content: str


class PostCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    slug: str
    description: str | None = None
    github_path: str
    cover_image: str | None = None
    published: bool = True

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        return validate_slug(v)

    @field_validator("github_path")
    @classmethod
    def check_github_path(cls, v: str) -> str:
        return validate_github_path(v)

    @field_validator("cover_image")
    @classmethod
    def check_cover_image(cls, v: str | None) -> str | None:
        return validate_http_url(v) if v is not None else None


class PostUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    github_path: str | None = None
    cover_image: str | None = None
    published: bool | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str | None) -> str | None:
        return validate_slug(v) if v is not None else None

    @field_validator("github_path")
    @classmethod
    def check_github_path(cls, v: str | None) -> str | None:
        return validate_github_path(v) if v is not None else None

    @field_validator("cover_image")
    @classmethod
    def check_cover_image(cls, v: str | None) -> str | None:
        return validate_http_url(v) if v is not None else None


def _to_response(post) -> PostResponse:
    return PostResponse(**post.__dict__)


@router.get("/posts", response_model=DataEnvelope[list[PostResponse]])
def list_posts(
    limit: int = Query(default=BLOG_DEFAULT_PAGE_SIZE, ge=1, le=PAGINATION_MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
):
    posts, total = list_published_posts(limit, offset)
    return DataEnvelope(
        data=[_to_response(post) for post in posts],
        meta={"limit": limit, "offset": offset, "total": total},
    )


@router.get("/posts/by-slug/{slug}", response_model=DataEnvelope[PostDetailResponse])
async def post_by_slug(slug: str, content: ContentService = Depends(get_content_service)):
    post = await run_in_threadpool(get_published_post_by_slug, slug)
    markdown = await content.get_markdown(post.github_path)
    return DataEnvelope(data=PostDetailResponse(**post.__dict__, content=markdown))


@router.get("/admin/posts", response_model=DataEnvelope[list[PostResponse]])
def admin_list_posts(_user: TokenClaims = Depends(get_current_user)):
    return DataEnvelope(data=[_to_response(post) for post in list_all_posts()])


@router.get("/admin/posts/{post_id}", response_model=DataEnvelope[PostResponse])
def admin_get_post(post_id: UUID, _user: TokenClaims = Depends(get_current_user)):
    return DataEnvelope(data=_to_response(get_post(post_id)))


@router.post("/admin/posts", response_model=DataEnvelope[PostResponse], status_code=201)
async def admin_create_post(
    payload: PostCreateRequest,
    admin: TokenClaims = Depends(require_admin),
    content: ContentService = Depends(get_content_service),
):
    await content.ensure_exists(payload.github_path)
    post = await run_in_threadpool(
        create_post,
        title=payload.title,
        slug=payload.slug,
        description=payload.description,
        github_path=payload.github_path,
        cover_image=payload.cover_image,
        author_id=admin.user_id,
        published=payload.published,
    )
    return DataEnvelope(data=_to_response(post))


@router.patch("/admin/posts/{post_id}", response_model=DataEnvelope[PostResponse])
async def admin_update_post(
    post_id: UUID,
    payload: PostUpdateRequest,
    _admin: TokenClaims = Depends(require_admin),
    content: ContentService = Depends(get_content_service),
):
    patch = payload.model_dump(exclude_unset=True, exclude_none=True)
    published = patch.pop("published", None)

    if "github_path" in patch:
        await content.ensure_exists(patch["github_path"])

    result = await run_in_threadpool(update_post, post_id, patch, published)
    if result.github_path_changed:
        content.invalidate(result.before.github_path)
    return DataEnvelope(data=_to_response(result.after))


@router.delete("/admin/posts/{post_id}", response_model=DataEnvelope[SuccessResponse])
async def admin_delete_post(
    post_id: UUID,
    _admin: TokenClaims = Depends(require_admin),
    content: ContentService = Depends(get_content_service),
):
    deleted = await run_in_threadpool(delete_post, post_id)
    content.invalidate(deleted.github_path)
    return DataEnvelope(data=SuccessResponse())


@router.delete("/admin/content-cache", response_model=DataEnvelope[SuccessResponse])
async def admin_invalidate_content_cache(
    path: str | None = Query(default=None, min_length=1),
    _admin: TokenClaims = Depends(require_admin),
    content: ContentService = Depends(get_content_service),
):
    content.invalidate(path)
    return DataEnvelope(data=SuccessResponse())
