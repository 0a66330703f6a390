from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.auth_utils import create_principal_token
from src.api.deps import Settings, get_settings
from src.api.main import app
from src.app_shell.rate_limit import RateLimiter
from src.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).resolve().parents[1]
RULES_PATH = PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def test_data_dir(tmp_path):
    return tmp_path


@pytest.fixture
def db_path(test_data_dir):
    """Fresh SQLite database with every migration applied."""
    path = str(test_data_dir / "altee.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def rules():
    return load_rules(RULES_PATH)


@pytest.fixture
def settings(test_data_dir, db_path, monkeypatch):
    monkeypatch.setenv("ALTEE_DATA_DIR", str(test_data_dir))
    monkeypatch.setenv("ALTEE_RULES_PATH", str(RULES_PATH))
    monkeypatch.delenv("ALTEE_SECRET_KEY", raising=False)
    return Settings()


@pytest.fixture
def client(settings, rules):
    """TestClient on a temporary database with a fresh rate limiter."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.state.rate_limiter = RateLimiter(rules.rate_limit)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        del app.state.rate_limiter


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_a() -> UUID:
    return uuid4()


@pytest.fixture
def user_b() -> UUID:
    return uuid4()


def auth_headers(principal_id: UUID, role: str = "user") -> dict[str, str]:
    token = create_principal_token(principal_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    return auth_headers


@pytest.fixture
def admin_headers(admin_id):
    return auth_headers(admin_id, "admin")


@pytest.fixture
def headers_a(user_a):
    return auth_headers(user_a)


@pytest.fixture
def headers_b(user_b):
    return auth_headers(user_b)
