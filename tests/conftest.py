"""Pytest fixtures for test suite."""

import pytest
from fastapi.testclient import TestClient

from rulebook_service.storage import init_db, reset_engine, set_db_path


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def temp_database(tmp_path):
    """Use a fresh SQLite database for each test."""
    db_path = tmp_path / "rulebooks.db"
    set_db_path(db_path)
    init_db()
    yield db_path
    reset_engine()


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client() -> TestClient:
    """Test client bound to a freshly created app."""
    from rulebook_service.main import create_app

    return TestClient(create_app())


@pytest.fixture
def rule_payload() -> dict:
    return {"id": "r1", "when": "x > 5", "do": "flag"}


@pytest.fixture
def rules_payloads() -> list[dict]:
    """Three rules with distinct conditions."""
    return [
        {"id": "large-amount", "when": "amount > 10000", "do": "flag", "description": "Big transfer"},
        {"id": "foreign", "when": "country != 'US'", "do": "review"},
        {
            "id": "night",
            "when": "hour < 6 || hour > 22",
            "do": "notify",
            "metadata": {"severity": "low"},
        },
    ]


DSL_RULEBOOK = """\
rulebook: fraud-checks
version: 2
meta:
  description: Flags suspicious transfers
  owner: risk-team
  source: wiki/fraud
rules:
  - rule: large-amount
    description: Big transfer
    when: amount > 10000
    do: flag
  - foreign
"""


@pytest.fixture
def dsl_rulebook() -> str:
    return DSL_RULEBOOK
