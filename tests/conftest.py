import os

import pytest
from fastapi.testclient import TestClient

from bodybind.api.main import create_app
from bodybind.core.binding.field_index import FieldIndexCache
from bodybind.core.config import BinderSettings
from bodybind.core.observability.metrics import reset_metrics


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("BODYBIND_ENV", "dev")


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def cache():
    return FieldIndexCache()


@pytest.fixture()
def settings():
    return BinderSettings(max_body_bytes=4096)


@pytest.fixture()
def app(settings):
    return create_app(settings=settings, cache=FieldIndexCache())


@pytest.fixture()
def client(app):
    return TestClient(app)
