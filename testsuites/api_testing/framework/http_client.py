"""
================================================================================
HTTP Client with Allure Integration
================================================================================

Session wrapper used by ApiClient, the generated API stubs and the API
tests.

    - Bearer token attached per request unless `auth=False`
    - 429 answers are retried after Retry-After (capped)
    - Timeouts and connection errors are retried with exponential backoff
    - Every exchange is attached to Allure (URL, headers, body, cURL,
      response) with credentials masked

Any HTTP status is returned to the caller as a response; only transport
failures and exhausted rate-limit retries raise.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from .config_loader import ConfigLoader


# Response bodies longer than this are truncated in the report
MAX_RESPONSE_LENGTH = 3000

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_BACKOFF = 0.5
DEFAULT_RETRY_MAX_WAIT = 5.0

MASK = "***MASKED***"
SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}
SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization", "session")


class HttpClientError(Exception):
    """Base exception for HTTP client errors."""
    pass


class RateLimitExceeded(HttpClientError):
    """Every attempt was answered with 429."""
    pass


class HttpClient:
    """
    Retrying, reporting HTTP session against `api.base_url`.

    Usage:
        >>> with HttpClient() as client:
        ...     token = client.post("/auth/login", json=credentials, auth=False).json()["token"]
        ...     client.set_auth_token(token)
        ...     client.get("/user/profile").status_code
        200
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            config: Anything with `get(key, default)`; defaults to ConfigLoader()
            transport: httpx transport override (MockTransport in unit tests)
        """
        config = config or ConfigLoader()
        self.config = config
        self.base_url = config.get("api.base_url", "https://api.apprabbit.com")
        self.timeout = float(config.get("api.timeout", 30))
        self.retry_count = max(1, int(config.get("api.retry_count", DEFAULT_RETRY_COUNT)))
        self.retry_backoff = float(config.get("api.retry_backoff", DEFAULT_RETRY_BACKOFF))
        self.retry_max_wait = float(config.get("api.retry_max_wait", DEFAULT_RETRY_MAX_WAIT))

        self.session: Optional[httpx.Client] = None
        self._transport = transport
        self._auth_token: Optional[str] = None

    def __enter__(self) -> "HttpClient":
        self.session = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.session:
            self.session.close()
            self.session = None

    # =========================================================================
    # Bearer token
    # =========================================================================

    @property
    def auth_token(self) -> Optional[str]:
        return self._auth_token

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    def clear_auth_token(self) -> None:
        self._auth_token = None

    # =========================================================================
    # Requests
    # =========================================================================

    def request(self, method: str, url: str, auth: bool = True, **kwargs: Any) -> httpx.Response:
        """
        Send one request, retrying rate limits and transport failures.

        Args:
            method: HTTP verb
            url: Path relative to `api.base_url`
            auth: Send the bearer token (when one is set)
            **kwargs: Passed to `httpx.Client.request` (json, params, headers...)

        Raises:
            HttpClientError: Called outside the `with` block
            RateLimitExceeded: Still 429 after every attempt
            httpx.TimeoutException / httpx.NetworkError: Last transport failure
        """
        if self.session is None:
            raise HttpClientError("HttpClient is not open; use 'with HttpClient() as client:'")

        method = method.upper()
        headers = dict(kwargs.pop("headers", None) or {})
        if auth and self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        kwargs["headers"] = headers

        logger.debug(f"🔄 {method} {url}")
        for attempt in range(1, self.retry_count + 1):
            try:
                response = self.session.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt == self.retry_count:
                    logger.error(f"❌ {method} {url} failed after {attempt} attempts: {e}")
                    raise
                wait = self._calculate_backoff(attempt - 1)
                logger.warning(f"Network error on {method} {url} ({e}); retry {attempt}/{self.retry_count} in {wait}s")
                time.sleep(wait)
                continue

            if response.status_code != 429:
                logger.debug(f"{method} {url} -> {response.status_code}")
                self._log_to_allure(method, url, kwargs, response)
                return response

            wait = self._parse_retry_after(response)
            logger.warning(f"429 on {method} {url}; retry {attempt}/{self.retry_count} in {wait}s")
            time.sleep(wait)

        raise RateLimitExceeded(f"{method} {url} still rate limited after {self.retry_count} attempts")

    def request_once(self, method: str, url: str, timeout: float, auth: bool = True) -> httpx.Response:
        """
        Single attempt with its own timeout: no retries, no Allure step.

        Used for availability checks that run under a per-candidate ceiling.

        Raises:
            HttpClientError: Called outside the `with` block
            httpx.HTTPError: Transport failure or timeout
        """
        if self.session is None:
            raise HttpClientError("HttpClient is not open; use 'with HttpClient() as client:'")
        headers = {}
        if auth and self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return self.session.request(method.upper(), url, headers=headers, timeout=timeout)

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    def _parse_retry_after(self, response: httpx.Response) -> float:
        """Seconds to wait after a 429 (header value, else backoff base), capped."""
        try:
            wait = float(response.headers.get("Retry-After", ""))
        except ValueError:
            wait = self.retry_backoff
        return min(wait, self.retry_max_wait)

    def _calculate_backoff(self, attempt: int) -> float:
        return min(self.retry_backoff * (2 ** attempt), self.retry_max_wait)

    # =========================================================================
    # Allure reporting
    # =========================================================================

    def _log_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        full_url = str(response.request.url) if response.request else url
        headers = self._redact_headers(kwargs.get("headers", {}))
        body = self._redact_body(kwargs.get("json"))
        marker = "✅" if response.status_code < 400 else "❌"

        with allure.step(f"{marker} {method} {url} → {response.status_code}"):
            allure.attach(full_url, name="🔗 Request URL", attachment_type=AttachmentType.TEXT)
            if headers:
                allure.attach(
                    json.dumps(headers, ensure_ascii=False, indent=2),
                    name="📤 Request Headers",
                    attachment_type=AttachmentType.JSON,
                )
            if body:
                allure.attach(
                    json.dumps(body, ensure_ascii=False, indent=2),
                    name="📤 Request Body",
                    attachment_type=AttachmentType.JSON,
                )
            allure.attach(
                self._build_curl(method, full_url, headers, body),
                name="🔧 cURL Command",
                attachment_type=AttachmentType.TEXT,
            )
            allure.attach(
                self._response_text(response),
                name=f"📥 Response Body ({response.status_code})",
                attachment_type=AttachmentType.JSON,
            )

    @staticmethod
    def _response_text(response: httpx.Response) -> str:
        try:
            text = json.dumps(response.json(), ensure_ascii=False, indent=2)
        except ValueError:
            text = response.text or "<empty>"
        if len(text) > MAX_RESPONSE_LENGTH:
            text = f"{text[:MAX_RESPONSE_LENGTH]}\n\n... [truncated, {len(text)} chars total]"
        return text

    @staticmethod
    def _redact_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
        return {k: MASK if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}

    @classmethod
    def _redact_body(cls, payload: Any) -> Any:
        """Mask credential-like keys at any depth."""
        if isinstance(payload, dict):
            return {
                k: MASK if any(f in k.lower() for f in SENSITIVE_FIELDS) else cls._redact_body(v)
                for k, v in payload.items()
            }
        if isinstance(payload, list):
            return [cls._redact_body(item) for item in payload]
        return payload

    @staticmethod
    def _build_curl(method: str, url: str, headers: Dict[str, str], body: Optional[Dict[str, Any]]) -> str:
        """Copy-paste cURL for the (already redacted) request."""
        parts = [f"curl -X {method}"]
        parts.extend(f"-H '{k}: {v}'" for k, v in headers.items())
        if body:
            parts.append(f"-d '{json.dumps(body, ensure_ascii=False)}'")
        parts.append(f"'{url}'")
        return " \\\n  ".join(parts)


__all__ = [
    "HttpClient",
    "HttpClientError",
    "RateLimitExceeded",
]
