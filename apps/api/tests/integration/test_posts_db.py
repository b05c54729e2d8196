import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text


def _error_code(payload: dict) -> str:
    error = payload.get("error")
    assert isinstance(error, dict)
    code = error.get("code")
    assert isinstance(code, str)
    return code


async def _create_post(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    body = {"title": "Hello", "slug": "hello", "github_path": "posts/hello.md"}
    body.update(overrides)
    resp = await client.post("/v1/admin/posts", headers=headers, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_and_read_post(client: AsyncClient, admin_headers, github):
    github.files["posts/hello.md"] = "# Hello world"

    created = await _create_post(client, admin_headers, description="First post")
    assert created["published_at"] is not None

    resp = await client.get("/v1/posts/by-slug/hello")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == created["id"]
    assert data["content"] == "# Hello world"

    # Served from cache after the existence check on create.
    assert github.calls == ["posts/hello.md"]


@pytest.mark.asyncio
async def test_duplicate_slug_is_conflict(client: AsyncClient, admin_headers, github):
    github.files["posts/hello.md"] = "# Hello"
    github.files["posts/other.md"] = "# Other"
    await _create_post(client, admin_headers)

    resp = await client.post(
        "/v1/admin/posts",
        headers=admin_headers,
        json={"title": "Again", "slug": "hello", "github_path": "posts/other.md"},
    )

    assert resp.status_code == 409
    assert _error_code(resp.json()) == "CONFLICT"
    assert resp.json()["error"]["message"] == "A post with this slug already exists"


@pytest.mark.asyncio
async def test_update_to_taken_slug_leaves_row_untouched(client: AsyncClient, admin_headers, github, db_session):
    github.files["posts/hello.md"] = "# Hello"
    github.files["posts/second.md"] = "# Second"
    await _create_post(client, admin_headers)
    second = await _create_post(client, admin_headers, slug="second", title="Second", github_path="posts/second.md")

    resp = await client.patch(
        f"/v1/admin/posts/{second['id']}",
        headers=admin_headers,
        json={"slug": "hello", "title": "Renamed"},
    )
    assert resp.status_code == 409

    with db_session.begin() as conn:
        row = conn.execute(
            text("SELECT slug, title, updated_at FROM post WHERE id = :id"), {"id": second["id"]}
        ).mappings().first()
    assert row["slug"] == "second"
    assert row["title"] == "Second"


@pytest.mark.asyncio
async def test_update_missing_post_is_not_found(client: AsyncClient, admin_headers, db_session):
    resp = await client.patch(
        f"/v1/admin/posts/{uuid.uuid4()}",
        headers=admin_headers,
        json={"title": "Ghost"},
    )

    assert resp.status_code == 404
    assert _error_code(resp.json()) == "NOT_FOUND"
    with db_session.begin() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM post")).scalar() == 0


@pytest.mark.asyncio
async def test_changing_github_path_invalidates_old_entry(client: AsyncClient, admin_headers, github, content_service):
    github.files["posts/hello.md"] = "# Hello"
    github.files["posts/hello-v2.md"] = "# Hello v2"
    created = await _create_post(client, admin_headers)
    assert "posts/hello.md" in content_service.cache

    resp = await client.patch(
        f"/v1/admin/posts/{created['id']}",
        headers=admin_headers,
        json={"github_path": "posts/hello-v2.md"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["github_path"] == "posts/hello-v2.md"
    assert "posts/hello.md" not in content_service.cache

    resp = await client.get("/v1/posts/by-slug/hello")
    assert resp.json()["data"]["content"] == "# Hello v2"


@pytest.mark.asyncio
async def test_drafts_are_hidden_from_public_listing(client: AsyncClient, admin_headers, github):
    github.files["posts/hello.md"] = "# Hello"
    github.files["posts/draft.md"] = "# Draft"
    await _create_post(client, admin_headers)
    draft = await _create_post(
        client, admin_headers, slug="draft", title="Draft", github_path="posts/draft.md", published=False
    )
    assert draft["published_at"] is None

    resp = await client.get("/v1/posts")
    payload = resp.json()
    assert payload["meta"]["total"] == 1
    assert [post["slug"] for post in payload["data"]] == ["hello"]

    resp = await client.get("/v1/posts/by-slug/draft")
    assert resp.status_code == 404

    resp = await client.get("/v1/admin/posts", headers=admin_headers)
    assert {post["slug"] for post in resp.json()["data"]} == {"hello", "draft"}

    resp = await client.patch(f"/v1/admin/posts/{draft['id']}", headers=admin_headers, json={"published": True})
    assert resp.json()["data"]["published_at"] is not None


@pytest.mark.asyncio
async def test_public_listing_paginates(client: AsyncClient, admin_headers, github):
    for i in range(3):
        github.files[f"posts/p{i}.md"] = f"# {i}"
        await _create_post(client, admin_headers, slug=f"p{i}", title=f"P{i}", github_path=f"posts/p{i}.md")

    resp = await client.get("/v1/posts", params={"limit": 2, "offset": 0})
    first_page = resp.json()
    assert first_page["meta"] == {"limit": 2, "offset": 0, "total": 3}
    assert len(first_page["data"]) == 2

    resp = await client.get("/v1/posts", params={"limit": 2, "offset": 2})
    second_page = resp.json()
    assert len(second_page["data"]) == 1
    seen = {post["slug"] for post in first_page["data"] + second_page["data"]}
    assert seen == {"p0", "p1", "p2"}


@pytest.mark.asyncio
async def test_delete_post_invalidates_and_removes(client: AsyncClient, admin_headers, github, content_service):
    github.files["posts/hello.md"] = "# Hello"
    created = await _create_post(client, admin_headers)

    resp = await client.delete(f"/v1/admin/posts/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert "posts/hello.md" not in content_service.cache

    resp = await client.get(f"/v1/admin/posts/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404

    resp = await client.delete(f"/v1/admin/posts/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404
