"""
================================================================================
Discovery Data Models
================================================================================

Immutable records produced by one discovery run.

    DiscoveryEntry      one logical UI element: candidates + match (or None)
    DiscoveryRecord     every entry for one page, timestamped
    EndpointEntry       one (method, path) attempt against the API
    ApiDiscoveryRecord  every endpoint attempt for one API base URL

Records round-trip through plain dicts so stubs can be regenerated from the
audit JSON without touching the live target.

================================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from apprabbit_tools.resolution import CandidateList


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class DiscoveryEntry:
    """
    Discovery result for one logical UI element.

    Attributes:
        candidate_list: Full original candidate list, declared order
        matched_candidate: Candidate that matched, or None when not found
        metadata: tag / visible / text captured from the matched element
        role: input / button / link / message / container
    """
    candidate_list: CandidateList
    matched_candidate: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    role: str = "container"

    @property
    def logical_name(self) -> str:
        return self.candidate_list.logical_name

    @property
    def found(self) -> bool:
        return self.matched_candidate is not None

    @property
    def primary(self) -> str:
        """Selector the generated accessor tries first."""
        return self.matched_candidate or self.candidate_list.primary

    @property
    def fallbacks(self) -> Tuple[str, ...]:
        return self.candidate_list.fallbacks(self.primary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.logical_name,
            "role": self.role,
            "found": self.found,
            "selector": self.matched_candidate,
            "fallbackSelectors": list(self.fallbacks) if self.found else [],
            "candidates": list(self.candidate_list.candidates),
            "elementType": self.metadata.get("tag"),
            "isVisible": self.metadata.get("visible"),
            "hasText": self.metadata.get("text"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiscoveryEntry":
        metadata = {}
        for key, meta_key in (("elementType", "tag"), ("isVisible", "visible"), ("hasText", "text")):
            if data.get(key) is not None:
                metadata[meta_key] = data[key]
        return cls(
            candidate_list=CandidateList(data["name"], data["candidates"]),
            matched_candidate=data.get("selector"),
            metadata=metadata,
            role=data.get("role", "container"),
        )


@dataclass(frozen=True)
class DiscoveryRecord:
    """
    Aggregated UI discovery result for one page.

    A record with unmatched entries is a valid partial result, not an error.
    """
    page_name: str
    url: str
    entries: Tuple[DiscoveryEntry, ...]
    base_url: str = ""
    discovered_at: str = field(default_factory=utc_timestamp)

    @property
    def found(self) -> List[DiscoveryEntry]:
        return [e for e in self.entries if e.found]

    @property
    def missing(self) -> List[DiscoveryEntry]:
        return [e for e in self.entries if not e.found]

    @property
    def is_partial(self) -> bool:
        return bool(self.missing)

    def entry(self, logical_name: str) -> DiscoveryEntry:
        for e in self.entries:
            if e.logical_name == logical_name:
                return e
        raise KeyError(logical_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageName": self.page_name,
            "url": self.url,
            "baseUrl": self.base_url,
            "discoveredAt": self.discovered_at,
            "selectors": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiscoveryRecord":
        return cls(
            page_name=data["pageName"],
            url=data["url"],
            base_url=data.get("baseUrl", ""),
            discovered_at=data.get("discoveredAt", ""),
            entries=tuple(DiscoveryEntry.from_dict(e) for e in data.get("selectors", [])),
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class EndpointEntry:
    """
    One (method, path) probe against the API.

    Attributes:
        status: HTTP status, or None when no response arrived
        exists: Route is believed to exist
        auth_required: Response indicated unauthorized/forbidden
        error: Transport error text when no response arrived
    """
    method: str
    path: str
    status: Optional[int] = None
    exists: bool = False
    auth_required: bool = False
    description: str = ""
    elapsed_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def logical_name(self) -> str:
        return f"{self.method} {self.path}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "url": self.path,
            "status": self.status,
            "exists": self.exists,
            "authRequired": self.auth_required,
            "description": self.description,
            "elapsedMs": self.elapsed_ms,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointEntry":
        return cls(
            method=data["method"],
            path=data["url"],
            status=data.get("status"),
            exists=bool(data.get("exists")),
            auth_required=bool(data.get("authRequired")),
            description=data.get("description", ""),
            elapsed_ms=data.get("elapsedMs"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ApiDiscoveryRecord:
    """Every endpoint attempt of one API discovery run, in probe order."""
    base_url: str
    endpoints: Tuple[EndpointEntry, ...]
    discovered_at: str = field(default_factory=utc_timestamp)

    @property
    def existing(self) -> List[EndpointEntry]:
        return [e for e in self.endpoints if e.exists]

    @property
    def missing_paths(self) -> List[str]:
        """Path templates no verb found."""
        return [path for path, item in self.path_summary().items() if not item["exists"]]

    @property
    def is_partial(self) -> bool:
        return bool(self.missing_paths)

    def lookup(self, method: str, path: str) -> EndpointEntry:
        for e in self.endpoints:
            if e.method == method.upper() and e.path == path:
                return e
        raise KeyError(f"{method.upper()} {path}")

    def path_summary(self) -> Dict[str, Dict[str, bool]]:
        """
        Collapse attempts per path template.

        A path exists when any verb found it; it requires auth when any
        existing verb answered unauthorized/forbidden.
        """
        summary: Dict[str, Dict[str, bool]] = {}
        for e in self.endpoints:
            item = summary.setdefault(e.path, {"exists": False, "authRequired": False})
            item["exists"] = item["exists"] or e.exists
            item["authRequired"] = item["authRequired"] or (e.exists and e.auth_required)
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discoveredAt": self.discovered_at,
            "baseUrl": self.base_url,
            "endpoints": [e.to_dict() for e in self.endpoints],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApiDiscoveryRecord":
        return cls(
            base_url=data.get("baseUrl", ""),
            discovered_at=data.get("discoveredAt", ""),
            endpoints=tuple(EndpointEntry.from_dict(e) for e in data.get("endpoints", [])),
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


__all__ = [
    "utc_timestamp",
    "DiscoveryEntry",
    "DiscoveryRecord",
    "EndpointEntry",
    "ApiDiscoveryRecord",
]
