"""
Test configuration and fixtures for the Leakwatch API.

The Admin API is never called: routes get a fake AdminSession and a
FakeExecutor through FastAPI dependency overrides.
"""

import os
from typing import Generator

os.environ.setdefault("SHOPIFY_API_KEY", "test-api-key")
os.environ.setdefault("SHOPIFY_API_SECRET", "test-api-secret-with-enough-bytes-for-hs256")

import pytest
from fastapi.testclient import TestClient

from app.services.shopify_auth_service import AdminSession
from auth_middleware import get_admin_session, get_graphql_client
from tests.factories import FakeExecutor, store_data


TEST_SESSION = AdminSession(shop="acme.myshopify.com", access_token="shpat_test", scope="read_products")


@pytest.fixture(scope="session")
def test_app():
    from main import app

    return app


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor(store_data())


@pytest.fixture
def client(test_app, executor) -> Generator[TestClient, None, None]:
    """TestClient with auth and the Admin API replaced by fakes"""
    test_app.dependency_overrides[get_admin_session] = lambda: TEST_SESSION
    test_app.dependency_overrides[get_graphql_client] = lambda: executor
    with TestClient(test_app) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(test_app) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as test_client:
        yield test_client
