"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_FORMAT", "text")


@pytest.fixture
def supabase_env(monkeypatch):
    """Supabase credentials present."""
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")


@pytest.fixture
def no_supabase_env(monkeypatch):
    """Supabase credentials absent."""
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)


@pytest.fixture
def mock_postgrest_request():
    """
    Chainable PostgREST request builder mock.

    Every filter/order/range call returns the same mock so the test can
    assert on the calls and set ``execute.return_value``.
    """
    request = MagicMock()
    for method in ("select", "eq", "in_", "ilike", "or_", "gte", "lte", "order", "range", "limit"):
        getattr(request, method).return_value = request
    request.execute.return_value = MagicMock(data=[], count=0)
    return request


@pytest.fixture
def mock_supabase_client(mock_postgrest_request):
    """Mock Supabase client whose table() returns the chainable request."""
    client = MagicMock()
    client.table.return_value = mock_postgrest_request
    return client


@pytest.fixture
def category_rows():
    from tests.fixtures.listings import category_mix_rows
    return category_mix_rows()


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
