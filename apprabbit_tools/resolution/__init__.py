"""
================================================================================
Resolution
================================================================================

Ordered-fallback resolution of logical UI elements and API operations.

Exports:
    - CandidateList: ordered, duplicate-free candidate selectors/paths
    - Resolver: first-success-in-order combinator over a probe
    - ProbeOutcome / ResolvedTarget: probe results
    - Error hierarchy rooted at ResolutionError

================================================================================
"""

from .candidates import CandidateList
from .errors import (
    CandidateExhaustedError,
    EmissionError,
    InvalidCandidateListError,
    ProbeTransientError,
    ResolutionError,
)
from .resolver import DEFAULT_PER_CANDIDATE_TIMEOUT, ProbeOutcome, ResolvedTarget, Resolver

__all__ = [
    "CandidateList",
    "CandidateExhaustedError",
    "EmissionError",
    "InvalidCandidateListError",
    "ProbeTransientError",
    "ResolutionError",
    "DEFAULT_PER_CANDIDATE_TIMEOUT",
    "ProbeOutcome",
    "ResolvedTarget",
    "Resolver",
]
