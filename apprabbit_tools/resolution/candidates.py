"""
================================================================================
Candidate Lists
================================================================================

An ordered, duplicate-free sequence of locator strings (UI) or path
templates (API) describing the ways to find one logical target.

Order encodes preference: the most specific / stable candidate comes first
and the resolver stops at the first one that matches.

Usage:
    >>> email = CandidateList("email_input", ["#email", "input[type=email]"])
    >>> email.primary
    '#email'
    >>> email.reordered("input[type=email]").candidates
    ('input[type=email]', '#email')

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Tuple

from .errors import InvalidCandidateListError


@dataclass(frozen=True)
class CandidateList:
    """
    Ordered fallback list for one logical element or API operation.

    Attributes:
        logical_name: Identifier of the element/operation (e.g. "email_input")
        candidates: Locator expressions or path templates, preferred first
    """

    logical_name: str
    candidates: Tuple[str, ...]

    def __init__(self, logical_name: str, candidates: Iterable[str]):
        items = tuple(candidates)
        if not logical_name:
            raise InvalidCandidateListError("Candidate list needs a logical name")
        if not items:
            raise InvalidCandidateListError(
                f"Candidate list for '{logical_name}' is empty"
            )
        seen = set()
        for item in items:
            if not isinstance(item, str) or not item:
                raise InvalidCandidateListError(
                    f"Invalid candidate {item!r} for '{logical_name}'"
                )
            if item in seen:
                raise InvalidCandidateListError(
                    f"Duplicate candidate {item!r} for '{logical_name}'"
                )
            seen.add(item)

        object.__setattr__(self, "logical_name", logical_name)
        object.__setattr__(self, "candidates", items)

    @classmethod
    def of(cls, logical_name: str, candidates: Iterable[str]) -> "CandidateList":
        """Build a list, dropping repeated entries but keeping first-seen order."""
        unique: Dict[str, None] = {}
        for item in candidates:
            unique.setdefault(item, None)
        return cls(logical_name, unique.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __contains__(self, item: object) -> bool:
        return item in self.candidates

    @property
    def primary(self) -> str:
        """The preferred candidate."""
        return self.candidates[0]

    def fallbacks(self, matched: str = "") -> Tuple[str, ...]:
        """Every candidate except `matched` (defaults to the primary)."""
        matched = matched or self.primary
        return tuple(c for c in self.candidates if c != matched)

    def reordered(self, matched: str) -> "CandidateList":
        """
        Return a copy with `matched` promoted to primary.

        Remaining candidates keep their original relative order.
        """
        if matched not in self.candidates:
            raise InvalidCandidateListError(
                f"{matched!r} is not a candidate of '{self.logical_name}'"
            )
        return CandidateList(self.logical_name, (matched,) + self.fallbacks(matched))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logicalName": self.logical_name,
            "candidates": list(self.candidates),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateList":
        return cls(data["logicalName"], data["candidates"])


__all__ = ["CandidateList"]
