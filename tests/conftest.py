# tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from config.dna_settings import DnaSettings
from services.dna_repository import StoreFailure

import main


@pytest.fixture(scope="session")
def client():
    return TestClient(main.app)


@pytest.fixture
def settings():
    return DnaSettings()


# ----------------------------------------------------------
# Disable Supabase for ALL tests
# ----------------------------------------------------------
@pytest.fixture(autouse=True)
def mock_supabase():
    with patch("services.dna_repository.db") as mock_db, \
            patch("services.dna_repository.supabase_upsert") as mock_upsert:
        mock_db.side_effect = StoreFailure("supabase disabled in tests")
        mock_upsert.return_value = []
        yield mock_db


@pytest.fixture
def fake_sb():
    """A chainable stand-in for the supabase-py query builder."""
    sb = MagicMock()
    query = MagicMock()
    for name in ("select", "delete", "eq", "in_", "order", "limit", "range", "gte", "lt", "is_"):
        getattr(query, name).return_value = query
    query.not_ = query
    sb.table.return_value = query
    query.execute.return_value = MagicMock(data=[])
    sb.query = query
    return sb
