"""
================================================================================
Endpoint Availability Test Suite
================================================================================

Live checks that the catalogued endpoints respond, plus ordered-fallback
resolution of logical operations to a concrete path.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import allure
import httpx
import pytest

from apprabbit_tools.discovery import API_PATHS, EndpointProber
from apprabbit_tools.report_tools import attach_json
from apprabbit_tools.resolution import CandidateExhaustedError, CandidateList

from testsuites.api_testing.framework import ApiClient


# Logical operations and the path variants seen across API versions
LOGIN_ENDPOINT = CandidateList.of("login", ["/auth/login", "/api/v1/auth/login", "/v1/auth/login", "/login"])
PROFILE_ENDPOINT = CandidateList.of("profile", ["/user/profile", "/api/v1/user/profile", "/me"])


@allure.epic("AppRabbit API")
@allure.feature("Endpoint Availability")
class TestEndpointAvailability:

    @pytest.mark.P1
    @pytest.mark.smoke
    @allure.story("Health")
    @allure.title("check_endpoint reports a status for the health route")
    def test_health_endpoint(self, api_client: ApiClient):
        result = api_client.check_endpoint("/health")
        assert result["available"], f"Health endpoint unreachable: {result['error']}"
        assert result["status"] is not None

    @pytest.mark.P1
    @pytest.mark.resolution
    @allure.story("Resolution")
    @allure.title("Login operation resolves to a responding path")
    def test_resolve_login_endpoint(self, api_client: ApiClient):
        resolved = api_client.resolve_endpoint(LOGIN_ENDPOINT, method="POST")

        allure.attach(
            f"{resolved.matched_candidate} (attempted: {', '.join(resolved.attempted)})",
            name="Resolved login endpoint",
            attachment_type=allure.attachment_type.TEXT,
        )
        assert resolved.matched_candidate in LOGIN_ENDPOINT

    @pytest.mark.P2
    @pytest.mark.resolution
    @allure.story("Resolution")
    @allure.title("Profile operation resolves or names every path tried")
    def test_resolve_profile_endpoint(self, api_client: ApiClient):
        try:
            resolved = api_client.resolve_endpoint(PROFILE_ENDPOINT)
        except CandidateExhaustedError as e:
            for path in PROFILE_ENDPOINT:
                assert path in str(e)
        else:
            assert resolved.matched_candidate in PROFILE_ENDPOINT

    @pytest.mark.P2
    @pytest.mark.discovery
    @allure.story("Discovery")
    @allure.title("Endpoint discovery records every catalogued path")
    def test_endpoint_discovery(self, base_url: str):
        with httpx.Client(base_url=base_url, timeout=5.0) as client:
            record = EndpointProber(client).discover(methods=("GET",))

        attach_json(record.path_summary(), name="Endpoint summary")

        assert [e.path for e in record.endpoints] == list(API_PATHS)
        assert all(e.status is not None or e.error for e in record.endpoints)
