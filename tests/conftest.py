"""Shared test fixtures."""

import copy
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from glucose.adapters.libre_fixture import FixtureLibreApiService  # noqa: E402

FIXTURES_DIR = Path(__file__).parent.parent / "glucose" / "adapters" / "fixtures"
PATIENT_ID = "P1"
USERNAME = "follower@example.com"
PASSWORD = "correct-horse"


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text())


def measurement(factory_timestamp: str, value: int, trend: int | None = None) -> dict:
    """A vendor measurement record as it appears on the wire."""
    record = {
        "FactoryTimestamp": factory_timestamp,
        "Timestamp": factory_timestamp,
        "type": 0,
        "ValueInMgPerDl": value,
    }
    if trend is not None:
        record["TrendArrow"] = trend
    return record


def bad_credentials_envelope() -> dict:
    return {"status": 2, "error": {"message": "notAuthenticated"}}


@pytest.fixture
def login_response():
    return load_fixture("login_response.json")


@pytest.fixture
def update_account_response():
    return load_fixture("update_account_response.json")


@pytest.fixture
def connections_response():
    return load_fixture("connections_response.json")


@pytest.fixture
def graph_response():
    return load_fixture("graph_response.json")


@pytest.fixture
def payloads(login_response, update_account_response, connections_response, graph_response):
    return {
        "login": login_response,
        "update_account": update_account_response,
        "connections": connections_response,
        "graph": graph_response,
    }


@pytest.fixture
def fixture_service(payloads):
    """A LibreApiService double answering from the bundled vendor payloads."""
    return FixtureLibreApiService(copy.deepcopy(payloads))
