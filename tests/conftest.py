import os
import dataclasses
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

# Set testing environment before importing app
os.environ["API_URL"] = "https://api-sandbox.example.test"
os.environ["ACCOUNT_CODE"] = "acc-test"
os.environ["PUBLIC_API_KEY"] = "pub-test"
os.environ["PRIVATE_SECRET_KEY"] = "priv-test"
os.environ["CUSTOMER_ID"] = "cust-test"
os.environ["BASE_URL"] = ""
os.environ["DEBUG"] = "False"

from main import app
from core import config as core_config
from core.config import get_settings
from services.yuno import YunoClient, get_yuno_client


@pytest.fixture()
def test_settings():
    return dataclasses.replace(core_config.settings, STORE_NAME="Test Store", YUNO_TIMEOUT_SECONDS=5)


@pytest.fixture()
def yuno():
    """Gateway client double; tests set return values per call."""
    return Mock(spec=YunoClient)


@pytest.fixture()
def client(test_settings, yuno):
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_yuno_client] = lambda: yuno
    # Unhandled errors are asserted as 500 responses rather than re-raised
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def settings_override(client, test_settings):
    """Swap settings fields for a single test, e.g. settings_override(BASE_URL=...)."""

    def _override(**changes):
        updated = dataclasses.replace(test_settings, **changes)
        app.dependency_overrides[get_settings] = lambda: updated
        return updated

    return _override
