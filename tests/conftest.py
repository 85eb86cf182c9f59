from __future__ import annotations

from pathlib import Path

import pytest

from resume_builder.config import reset_settings_cache
from resume_builder.data.db import init_db, reset_engine

TEST_JWT_SECRET = "test-secret-with-enough-bytes-for-hs256"


@pytest.fixture(autouse=True)
def jwt_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Sign tokens with a fixed secret and default lifetimes."""
    monkeypatch.setenv("RESUME_JWT_SECRET", TEST_JWT_SECRET)
    for name in (
        "RESUME_JWT_ALGORITHM",
        "RESUME_JWT_TTL_SECONDS",
        "RESUME_JWT_REFRESH_GRACE_SECONDS",
        "RESUME_PWD_RECOVERY_TTL_SECONDS",
        "RESUME_FRONTEND_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def api_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Use a temporary SQLite DB for API tests."""
    db_path = tmp_path / "api.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture(autouse=True)
def _api_db_for_api_tests(request: pytest.FixtureRequest) -> None:
    """Automatically add api_db fixture to tests in API test files."""
    test_file_path = Path(str(request.node.path))
    if "api" in test_file_path.stem.lower():
        request.getfixturevalue("api_db")
