"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("TIMEZONE", "UTC")


# Settings are built at import time, so the environment must exist before
# any test module imports ``app``.
_set_default_env()

from tests.fakes import HOST_ID, FakePayPal, FakeSupabase  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def fake_db() -> Iterator[FakeSupabase]:
    """Return an empty in-memory Supabase double."""
    from app.services.common import clear_profile_cache

    clear_profile_cache()
    yield FakeSupabase()
    clear_profile_cache()


@pytest.fixture
def paypal() -> FakePayPal:
    """Return a scriptable PayPal endpoint."""
    return FakePayPal()


@pytest.fixture
def api(client: TestClient, fake_db: FakeSupabase, paypal: FakePayPal) -> Iterator[TestClient]:
    """Test client authenticated as ``HOST_ID`` with fake backends."""
    from app.dependencies import get_current_host_id, get_db_client, get_payout_client
    from app.main import app

    provider = paypal.provider()
    app.dependency_overrides[get_db_client] = lambda: fake_db
    app.dependency_overrides[get_payout_client] = lambda: provider
    app.dependency_overrides[get_current_host_id] = lambda: HOST_ID
    yield client
    app.dependency_overrides.clear()
