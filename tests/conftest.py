"""Shared pytest fixtures for the Mealmerge test suite."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mealmerge.config import get_settings
from mealmerge.db.repository import reset_repository_state
from mealmerge.server import deps
from mealmerge.server.app import create_app
from tests.fakes import ADMIN_SECRET, StaticIdentityProvider


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database and known secrets."""

    db_path = tmp_path / "test_mealmerge.db"
    monkeypatch.setenv("MEALMERGE_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("MEALMERGE_ENV", "test")
    monkeypatch.setenv("MEALMERGE_ADMIN_PASSWORD", ADMIN_SECRET)
    monkeypatch.setenv("MEALMERGE_RATE_LIMIT_SWEEP_ENABLED", "false")
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    get_settings.cache_clear()


@pytest.fixture()
def identity_provider() -> StaticIdentityProvider:
    """Identity provider stub; register tokens with ``identity_provider.tokens``."""

    return StaticIdentityProvider()


@pytest.fixture()
def app(identity_provider) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    application.dependency_overrides[deps.get_identity_provider] = lambda: identity_provider
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)
