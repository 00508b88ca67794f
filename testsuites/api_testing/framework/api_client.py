"""
================================================================================
AppRabbit API Client
================================================================================

Domain-level client for the AppRabbit REST API, built on HttpClient.

Provides:
    - Authentication flow (login stores the bearer token, logout clears it)
    - User / app / project endpoints
    - Generic verbs for endpoints found by discovery
    - Availability checks and ordered-fallback endpoint resolution

Responses are returned as `ApiResponse`; non-2xx statuses are data, not
exceptions.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import allure
import httpx
from loguru import logger

from apprabbit_tools.resolution import CandidateList, ProbeOutcome, ResolvedTarget, Resolver

from .http_client import HttpClient


@dataclass
class ApiResponse:
    """Status, parsed body and reason phrase of one API call."""
    data: Any
    status: int
    message: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "ApiResponse":
        try:
            data = response.json()
        except ValueError:
            data = response.text
        return cls(data=data, status=response.status_code, message=response.reason_phrase)


class ApiClient:
    """
    AppRabbit API client.

    Usage:
        >>> with HttpClient() as http:
        ...     api = ApiClient(http)
        ...     api.login("qa@apprabbit.com", "secret")
        ...     api.get_apps().status
        200
    """

    def __init__(self, http: HttpClient):
        self.http = http

    # =========================================================================
    # Authentication
    # =========================================================================

    @allure.step("API login ({email})")
    def login(self, email: str, password: str) -> ApiResponse:
        """
        Log in and keep the returned token for later calls.
        """
        response = ApiResponse.from_httpx(
            self.http.post("/auth/login", json={"email": email, "password": password}, auth=False)
        )
        if isinstance(response.data, dict) and response.data.get("token"):
            self.http.set_auth_token(response.data["token"])
            logger.info(f"🔐 Logged in as {email}")
        return response

    @allure.step("API logout")
    def logout(self) -> ApiResponse:
        response = ApiResponse.from_httpx(self.http.post("/auth/logout"))
        self.http.clear_auth_token()
        return response

    def register(self, email: str, password: str, name: str) -> ApiResponse:
        return ApiResponse.from_httpx(
            self.http.post(
                "/auth/register",
                json={"email": email, "password": password, "name": name},
                auth=False,
            )
        )

    @property
    def is_authenticated(self) -> bool:
        return self.http.auth_token is not None

    # =========================================================================
    # User / Apps / Projects
    # =========================================================================

    def get_user_profile(self) -> ApiResponse:
        return self.get("/user/profile")

    def update_user_profile(self, data: Dict[str, Any]) -> ApiResponse:
        return self.put("/user/profile", data)

    def get_apps(self) -> ApiResponse:
        return self.get("/apps")

    def create_app(self, app_data: Dict[str, Any]) -> ApiResponse:
        return self.post("/apps", app_data)

    def get_projects(self) -> ApiResponse:
        return self.get("/projects")

    # =========================================================================
    # Generic verbs for discovered endpoints
    # =========================================================================

    def get(self, endpoint: str) -> ApiResponse:
        return ApiResponse.from_httpx(self.http.get(endpoint))

    def post(self, endpoint: str, data: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return ApiResponse.from_httpx(self.http.post(endpoint, json=data))

    def put(self, endpoint: str, data: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return ApiResponse.from_httpx(self.http.put(endpoint, json=data))

    def delete(self, endpoint: str) -> ApiResponse:
        return ApiResponse.from_httpx(self.http.delete(endpoint))

    # =========================================================================
    # Availability
    # =========================================================================

    def is_endpoint_available(self, endpoint: str, method: str = "GET") -> bool:
        """
        True when the route answers with any status below 500.

        401/403 count as available: the route exists behind auth.
        """
        try:
            response = self.http.request(method, endpoint)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {endpoint} unreachable: {e}")
            return False
        return response.status_code < 500

    def check_endpoint(
        self,
        endpoint: str,
        method: str = "GET",
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call an endpoint without judging the status.

        Returns:
            {"available": bool, "status": int | None, "error": str | None}
        """
        kwargs: Dict[str, Any] = {}
        if data is not None:
            kwargs["json"] = data
        try:
            response = self.http.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            return {"available": False, "status": None, "error": str(e)}
        return {"available": True, "status": response.status_code, "error": None}

    def resolve_endpoint(
        self,
        candidate_list: CandidateList,
        method: str = "GET",
        resolver: Optional[Resolver] = None,
    ) -> ResolvedTarget:
        """
        Pick the first candidate path that is available for `method`.

        Unlike `is_endpoint_available`, a 404 is a miss here: the resolver
        needs a route that exists, not just a live host.

        Raises:
            CandidateExhaustedError: When no candidate path is available
        """
        resolver = resolver or Resolver()

        def probe(path: str, timeout: float) -> ProbeOutcome:
            try:
                response = self.http.request_once(method, path, timeout=timeout)
            except httpx.HTTPError as e:
                return ProbeOutcome.miss(status=None, error=str(e))
            status = response.status_code
            if status < 500 and status != 404:
                return ProbeOutcome.hit(status=status)
            return ProbeOutcome.miss(status=status, error=None)

        with allure.step(f"Resolve endpoint {candidate_list.logical_name} ({method})"):
            return resolver.resolve_sync(candidate_list, probe)


__all__ = [
    "ApiClient",
    "ApiResponse",
]
