import os
import shutil
import subprocess
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, text
from testcontainers.postgres import PostgresContainer

import portfolio.db
from portfolio.auth.db import upsert_admin_user
from portfolio.auth.jwt import create_access_token
from portfolio.auth.passwords import hash_password
from portfolio.content import ContentCache, ContentFetchError, ContentService
from portfolio.main import app
from portfolio.v1.deps import get_content_service

ADMIN_PASSWORD = "password123"


class FakeGitHub:
    """Stands in for GitHubContentClient; serves markdown from a dict."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.calls: list[str] = []

    async def fetch_markdown(self, path: str) -> str:
        self.calls.append(path)
        if path not in self.files:
            raise ContentFetchError(
                f"Failed to fetch markdown from GitHub: 404 Not Found ({path})",
                upstream_status=404,
            )
        return self.files[path]


def _docker_available() -> bool:
    if shutil.which("docker") is None:
        return False

    try:
        subprocess.check_output(["docker", "info"], stderr=subprocess.STDOUT, text=True)
    except Exception:
        return False

    return True


def _ensure_docker_host_env() -> None:
    if os.environ.get("DOCKER_HOST"):
        return

    try:
        host = subprocess.check_output(
            ["docker", "context", "inspect", "--format", "{{.Endpoints.docker.Host}}"],
            text=True,
        ).strip()
    except Exception:
        return

    if host:
        os.environ["DOCKER_HOST"] = host


@pytest.fixture(scope="session")
def postgres_container():
    _ensure_docker_host_env()
    os.environ.setdefault("TESTCONTAINERS_RYUK_DISABLED", "true")

    if not _docker_available():
        pytest.skip("Docker is required for integration tests")

    with PostgresContainer("postgres:16", driver="psycopg") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def db_engine(postgres_container):
    engine = create_engine(postgres_container.get_connection_url())

    # apps/api/tests -> repo root is three levels up
    init_sql_path = Path(__file__).parent / "../../../infra/db/init.sql"
    with engine.begin() as conn:
        conn.execute(text(init_sql_path.read_text()))

    portfolio.db._ENGINE = engine
    yield engine
    engine.dispose()
    portfolio.db._ENGINE = None


@pytest.fixture(scope="function")
def db_session(db_engine):
    with db_engine.begin() as conn:
        conn.execute(text("TRUNCATE TABLE post, project, admin_users CASCADE"))
    yield db_engine


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def content_service(github: FakeGitHub) -> ContentService:
    return ContentService(ContentCache(ttl_s=300, max_entries=500), github)


@pytest.fixture
def override_content_service(content_service: ContentService):
    app.dependency_overrides[get_content_service] = lambda: content_service
    yield content_service
    app.dependency_overrides.pop(get_content_service, None)


@pytest_asyncio.fixture
async def client(db_session, override_content_service):  # noqa: ARG001
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers(db_session) -> dict[str, str]:  # noqa: ARG001
    with portfolio.db.get_engine().begin() as conn:
        user = upsert_admin_user(conn, username="admin", password_hash=hash_password(ADMIN_PASSWORD))
    token, _ = create_access_token(user_id=user.id, username=user.username)
    return {"Authorization": f"Bearer {token}"}
