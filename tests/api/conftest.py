"""API test fixtures.

Each test gets its own app, container and in-memory repository. The client
primes the CSRF cookie with a GET so unsafe requests can echo it back.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from finauth.core.container import build_container
from finauth.main import create_app
from finauth.presentation.security import CSRF_COOKIE_NAME, CSRF_HEADER_NAME
from tests.conftest import TEST_EMAIL, TEST_PASSWORD, make_settings


@pytest.fixture
def api_settings():
    return make_settings()


@pytest.fixture
def container(api_settings):
    return build_container(api_settings, logger=Mock())


@pytest.fixture
def client(api_settings, container):
    app = create_app(api_settings, container=container)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        # Prime fm_csrf
        test_client.get("/health")
        yield test_client


def csrf_headers(client: TestClient) -> dict[str, str]:
    return {CSRF_HEADER_NAME: client.cookies.get(CSRF_COOKIE_NAME)}


def signup(client: TestClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD):
    return client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "accept_terms": True, "first_name": "Casey"},
        headers=csrf_headers(client),
    )


def login(client: TestClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD, **extra):
    return client.post(
        "/api/auth/login",
        json={"email": email, "password": password, **extra},
        headers=csrf_headers(client),
    )
