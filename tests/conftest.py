import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_DB_DIR = tempfile.mkdtemp(prefix="portfolio-api-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-0123456789")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("APP_ENV", "test")
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)
os.environ.pop("BLOCKED_IPS", None)
os.environ.pop("REVOKE_TOKENS_ON_PASSWORD_CHANGE", None)

from portfolio_api.database import init_db, session_scope  # noqa: E402
from portfolio_api.main import create_app  # noqa: E402
from portfolio_api.models.session import SessionEntry  # noqa: E402
from portfolio_api.models.user import UserEntry  # noqa: E402
from portfolio_api.services.users import user_store  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass-123"
EDITOR_EMAIL = "editor@example.com"
EDITOR_PASSWORD = "editor-pass-123"


@pytest.fixture(scope="session", autouse=True)
def _database():
    init_db()
    yield


@pytest.fixture(autouse=True)
def _clean_tables():
    with session_scope() as session:
        session.query(SessionEntry).delete()
        session.query(UserEntry).delete()
    yield


@pytest.fixture()
def app():
    return create_app()


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def admin_user():
    entry, _ = user_store.ensure_admin(ADMIN_EMAIL, ADMIN_PASSWORD, "Site Admin")
    return entry


@pytest.fixture()
def editor_user():
    return user_store.create_user(EDITOR_EMAIL, EDITOR_PASSWORD, "Content Editor", role="editor")


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_token(client, admin_user):
    response = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture()
def editor_token(client, editor_user):
    response = login(client, EDITOR_EMAIL, EDITOR_PASSWORD)
    assert response.status_code == 200
    return response.json()["token"]
