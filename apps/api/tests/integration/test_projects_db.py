import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text


async def _create_project(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    body = {"title": "Portfolio", "slug": "portfolio", "tag": "web", "stack": ["Python", "FastAPI"]}
    body.update(overrides)
    resp = await client.post("/v1/admin/projects", headers=headers, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_and_fetch_project(client: AsyncClient, admin_headers):
    created = await _create_project(client, admin_headers, github_url="https://github.com/me/portfolio")

    resp = await client.get("/v1/projects/by-slug/portfolio")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == created["id"]
    assert data["stack"] == ["Python", "FastAPI"]
    assert data["github_url"] == "https://github.com/me/portfolio"


@pytest.mark.asyncio
async def test_duplicate_project_slug_is_conflict(client: AsyncClient, admin_headers):
    await _create_project(client, admin_headers)

    resp = await client.post(
        "/v1/admin/projects",
        headers=admin_headers,
        json={"title": "Copy", "slug": "portfolio", "tag": "web"},
    )

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_filters_tags_and_stacks(client: AsyncClient, admin_headers):
    await _create_project(client, admin_headers)
    await _create_project(client, admin_headers, slug="cli", title="CLI", tag="cli", stack=["Python", "Click"])
    await _create_project(client, admin_headers, slug="game", title="Game", tag="games", stack=["Rust"])

    resp = await client.get("/v1/projects/tags")
    assert resp.json()["data"] == ["cli", "games", "web"]

    resp = await client.get("/v1/projects/stacks")
    assert resp.json()["data"] == ["Click", "FastAPI", "Python", "Rust"]

    resp = await client.get("/v1/projects", params={"stack": "Python"})
    assert {item["slug"] for item in resp.json()["data"]} == {"portfolio", "cli"}

    resp = await client.get("/v1/projects", params={"tag": "cli", "stack": "Python"})
    assert [item["slug"] for item in resp.json()["data"]] == ["cli"]


@pytest.mark.asyncio
async def test_pagination_meta(client: AsyncClient, admin_headers):
    for i in range(5):
        await _create_project(client, admin_headers, slug=f"project-{i}", title=f"Project {i}")

    resp = await client.get("/v1/projects", params={"limit": 2, "page": 3})
    payload = resp.json()

    assert payload["meta"] == {"total": 5, "page": 3, "page_size": 2, "total_pages": 3}
    assert len(payload["data"]) == 1

    resp = await client.get("/v1/projects/latest", params={"limit": 2})
    assert len(resp.json()["data"]) == 2


@pytest.mark.asyncio
async def test_update_project_bumps_updated_at(client: AsyncClient, admin_headers):
    created = await _create_project(client, admin_headers)

    resp = await client.patch(
        f"/v1/admin/projects/{created['id']}",
        headers=admin_headers,
        json={"title": "Portfolio v2", "stack": ["Python"]},
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "Portfolio v2"
    assert data["stack"] == ["Python"]
    assert data["slug"] == "portfolio"
    assert data["updated_at"] >= created["updated_at"]


@pytest.mark.asyncio
async def test_update_missing_project_writes_nothing(client: AsyncClient, admin_headers, db_session):
    await _create_project(client, admin_headers)

    resp = await client.patch(
        f"/v1/admin/projects/{uuid.uuid4()}",
        headers=admin_headers,
        json={"slug": "portfolio"},
    )

    assert resp.status_code == 404
    with db_session.begin() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM project")).scalar() == 1


@pytest.mark.asyncio
async def test_delete_project(client: AsyncClient, admin_headers):
    created = await _create_project(client, admin_headers)

    resp = await client.delete(f"/v1/admin/projects/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200

    resp = await client.get("/v1/projects/by-slug/portfolio")
    assert resp.status_code == 404
