"""
================================================================================
Resolution Errors
================================================================================

Exception hierarchy shared by the locator resolver, the discovery probers
and the artifact emitter.

    ResolutionError
     ├── InvalidCandidateListError   (also a ValueError)
     ├── CandidateExhaustedError     every candidate failed to match
     ├── ProbeTransientError         one candidate probe failed (internal)
     └── EmissionError               artifacts could not be written

================================================================================
"""

from __future__ import annotations

from typing import Iterable, Tuple


class ResolutionError(Exception):
    """Base exception for locator resolution and discovery failures."""
    pass


class InvalidCandidateListError(ResolutionError, ValueError):
    """Raised when a candidate list is empty or contains duplicates."""
    pass


class CandidateExhaustedError(ResolutionError):
    """
    Raised when no candidate in a list matched the live target.

    Attributes:
        logical_name: Name of the element or endpoint being resolved
        candidates: Every candidate that was tried, in order
    """

    def __init__(self, logical_name: str, candidates: Iterable[str]):
        self.logical_name = logical_name
        self.candidates: Tuple[str, ...] = tuple(candidates)
        tried = "\n".join(f"  - {c}" for c in self.candidates)
        super().__init__(
            f"Could not resolve '{logical_name}' with any of "
            f"{len(self.candidates)} candidates:\n{tried}"
        )

    def __reduce__(self):
        return (self.__class__, (self.logical_name, self.candidates))


class ProbeTransientError(ResolutionError):
    """
    A single candidate probe failed (timeout, network error, bad selector).

    Never escapes the resolver; it is treated as "this candidate did not
    match" so the next candidate can be tried.
    """

    def __init__(self, candidate: str, reason: str = ""):
        self.candidate = candidate
        self.reason = reason
        super().__init__(f"Probe failed for {candidate!r}: {reason}" if reason else candidate)


class EmissionError(ResolutionError):
    """Raised when discovery artifacts cannot be written."""
    pass


__all__ = [
    "ResolutionError",
    "InvalidCandidateListError",
    "CandidateExhaustedError",
    "ProbeTransientError",
    "EmissionError",
]
