"""
================================================================================
API Endpoint Prober
================================================================================

Calls every path template of the API catalog with every verb of a small
fixed set and classifies each attempt:

    exists         a response arrived, not 5xx, not an explicit "not found"
    auth required  the response was unauthorized / forbidden
    absent         connection failure, timeout, 5xx or explicit not-found

Attempts are independent and sequential over one HTTP session; a failing
attempt never stops the traversal.

Classifying "auth required" from a single status code is a heuristic (some
APIs answer 401 for every path), so the rules live in `StatusClassifier`
and can be tuned per target.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional

import allure
import httpx
from loguru import logger

from apprabbit_tools.resolution import CandidateList, ProbeOutcome, ResolvedTarget, Resolver

from .catalogs import API_METHODS, API_PATHS, describe_endpoint
from .models import ApiDiscoveryRecord, EndpointEntry


# Per-request timeout for discovery calls, in seconds
DEFAULT_PROBE_TIMEOUT = 5.0


@dataclass(frozen=True)
class StatusClassifier:
    """
    Status-code policy for endpoint discovery.

    Attributes:
        auth_statuses: Statuses that mean "exists but needs credentials"
        absent_statuses: Statuses that explicitly mean "no such route"
        auth_implies_exists: Treat an auth status as proof of existence.
            Disable for APIs that answer 401 before routing.
    """
    auth_statuses: FrozenSet[int] = frozenset({401, 403})
    absent_statuses: FrozenSet[int] = frozenset({404})
    auth_implies_exists: bool = True

    def auth_required(self, status: int) -> bool:
        return status in self.auth_statuses

    def exists(self, status: int) -> bool:
        if status >= 500 or status in self.absent_statuses:
            return False
        if status in self.auth_statuses:
            return self.auth_implies_exists
        return True


class EndpointProber:
    """
    Discover which API routes respond on a target host.

    Args:
        client: httpx client owned by this run, with `base_url` set
        classifier: Status classification policy
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        client: httpx.Client,
        classifier: Optional[StatusClassifier] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
    ):
        self.client = client
        self.classifier = classifier or StatusClassifier()
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return str(self.client.base_url).rstrip("/")

    def discover(
        self,
        paths: Iterable[str] = API_PATHS,
        methods: Iterable[str] = API_METHODS,
    ) -> ApiDiscoveryRecord:
        """
        Probe every path × method combination.

        Returns:
            ApiDiscoveryRecord with one entry per attempt, in probe order
        """
        methods = [m.upper() for m in methods]
        logger.info(f"🔍 Discovering API endpoints on {self.base_url}...")

        entries: List[EndpointEntry] = []
        with allure.step(f"Discover API endpoints: {self.base_url}"):
            for path in paths:
                for method in methods:
                    entries.append(self.check(method, path))

        record = ApiDiscoveryRecord(base_url=self.base_url, endpoints=tuple(entries))
        logger.info(f"Found {len(record.existing)}/{len(entries)} responding endpoints")
        return record

    def check(self, method: str, path: str) -> EndpointEntry:
        """Issue one request and classify the outcome."""
        method = method.upper()
        started = time.monotonic()
        try:
            response = self.client.request(method, path, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(f"❌ Failed: {method} {path} ({type(e).__name__})")
            return EndpointEntry(
                method=method,
                path=path,
                description=describe_endpoint(path),
                error=f"{type(e).__name__}: {e}"[:200],
            )

        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        status = response.status_code
        exists = self.classifier.exists(status)
        auth_required = self.classifier.auth_required(status)

        marker = "✅ Found" if exists else "➖ Absent"
        logger.info(f"{marker}: {method} {path} ({status})")

        return EndpointEntry(
            method=method,
            path=path,
            status=status,
            exists=exists,
            auth_required=auth_required,
            description=describe_endpoint(path),
            elapsed_ms=elapsed_ms,
        )

    def probe(self, method: str) -> Callable[[str, float], ProbeOutcome]:
        """
        Reachability probe for `Resolver.resolve_sync` over path candidates.

        A candidate path matches when the route exists under the classifier.
        """
        method = method.upper()

        def _probe(path: str, timeout: float) -> ProbeOutcome:
            response = self.client.request(method, path, timeout=timeout)
            status = response.status_code
            return ProbeOutcome(
                self.classifier.exists(status),
                {
                    "method": method,
                    "status": status,
                    "authRequired": self.classifier.auth_required(status),
                },
            )

        return _probe

    def resolve(
        self,
        candidate_list: CandidateList,
        method: str = "GET",
        resolver: Optional[Resolver] = None,
    ) -> ResolvedTarget:
        """Resolve a logical operation to the first path that responds."""
        resolver = resolver or Resolver(per_candidate_timeout=self.timeout)
        return resolver.resolve_sync(candidate_list, self.probe(method))


__all__ = [
    "DEFAULT_PROBE_TIMEOUT",
    "StatusClassifier",
    "EndpointProber",
]
