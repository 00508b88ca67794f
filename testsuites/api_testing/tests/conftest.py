"""
================================================================================
API Testing Pytest Configuration
================================================================================

Shared fixtures for API automation tests.

Fixtures:
    - config: Configuration loader instance
    - http_client: Configured HTTP client for API requests
    - api_client: AppRabbit domain client
    - authenticated_api: ApiClient logged in with the configured test account

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Generator

import allure
import pytest

from testsuites.api_testing.framework import ApiClient, ConfigLoader, HttpClient


# =============================================================================
# Session-Scoped Fixtures (Shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def config() -> ConfigLoader:
    """
    Provide configuration loader instance.

    Session-scoped to ensure configuration is loaded only once.
    """
    return ConfigLoader()


@pytest.fixture(scope="session")
def base_url(config: ConfigLoader) -> str:
    """Get API base URL from configuration."""
    return config.get("api.base_url", "https://api.apprabbit.com")


@pytest.fixture(scope="session")
def credentials(config: ConfigLoader) -> Dict[str, str]:
    return {
        "email": config.get("auth.email", "test@example.com"),
        "password": config.get("auth.password", "password123"),
    }


# =============================================================================
# Function-Scoped Fixtures (Fresh for each test)
# =============================================================================

@pytest.fixture
def http_client(config: ConfigLoader) -> Generator[HttpClient, None, None]:
    """
    Provide configured HTTP client for API requests.

    Usage:
        def test_example(http_client):
            response = http_client.get("/apps")
            assert response.status_code < 500
    """
    with HttpClient(config) as client:
        yield client


@pytest.fixture
def api_client(http_client: HttpClient) -> ApiClient:
    return ApiClient(http_client)


@pytest.fixture
def authenticated_api(api_client: ApiClient, credentials: Dict[str, str]) -> ApiClient:
    """
    ApiClient logged in with the configured account.

    Skips when the target rejects the credentials; authenticated suites
    cannot say anything useful without a session.
    """
    response = api_client.login(credentials["email"], credentials["password"])
    if not api_client.is_authenticated:
        pytest.skip(f"Login with configured test account failed ({response.status})")
    return api_client


@pytest.fixture
def unique_id() -> str:
    """
    Generate unique identifier for test isolation.
    """
    return f"qa_{uuid.uuid4().hex[:8]}"


@pytest.fixture
def new_user_data(unique_id: str) -> Dict[str, Any]:
    return {
        "email": f"{unique_id}@test.example.com",
        "password": f"Pw-{unique_id}",
        "name": f"Test User {unique_id}",
    }


# =============================================================================
# Allure Reporting Hooks
# =============================================================================

def pytest_exception_interact(node, call, report):
    """Attach additional info on test failure."""
    if report.failed:
        allure.attach(
            str(call.excinfo.value),
            name="Error Details",
            attachment_type=allure.attachment_type.TEXT
        )
