"""
Pytest configuration for E2E tests against a deployed Gallery API.
"""

import os

import pytest
import requests


@pytest.fixture(scope="session")
def api_url():
    """API URL for the backend."""
    url = os.getenv("API_URL")
    if not url:
        pytest.skip("API URL not provided. Set API_URL environment variable.")
    return url.rstrip("/")


@pytest.fixture(scope="session")
def access_token():
    """Auth0 access token of the test user."""
    token = os.getenv("TEST_ACCESS_TOKEN")
    if not token:
        pytest.skip("Test token not provided. Set TEST_ACCESS_TOKEN environment variable.")
    return token


@pytest.fixture(scope="session")
def api(api_url):
    """Anonymous HTTP session bound to the API URL."""
    session = requests.Session()
    session.headers["Content-Type"] = "application/json"

    def call(method, path, **kwargs):
        return session.request(method, f"{api_url}{path}", timeout=15, **kwargs)

    return call


@pytest.fixture(scope="session")
def auth_api(api, access_token):
    """HTTP calls carrying the test user's bearer token."""

    def call(method, path, **kwargs):
        headers = {"Authorization": f"Bearer {access_token}", **kwargs.pop("headers", {})}
        return api(method, path, headers=headers, **kwargs)

    return call


@pytest.fixture
def album(auth_api):
    """Create a private album for the test and delete it afterwards."""
    auth_api("PUT", "/user")
    response = auth_api("PUT", "/album/my", json={
        "visibility": "private",
        "title": "E2E album",
        "description": "Created by the e2e suite",
    })
    assert response.status_code == 201
    item = response.json()["item"]

    yield item

    auth_api("DELETE", "/album/my", json={"albumId": item["albumId"]})
