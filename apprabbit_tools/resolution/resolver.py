"""
================================================================================
Ordered-Fallback Resolver
================================================================================

First-success-in-order combinator shared by UI and API resolution.

The caller supplies a *probe*: a callable that receives one candidate and a
timeout and reports whether the candidate matches the live target (a page
element being present/visible, an endpoint being reachable). The resolver
walks the candidate list in declared order and returns the first match.

Rules:
    - A probe failure of any kind counts as "no match" for that candidate
    - Each probe is bounded by the per-candidate timeout
    - The list itself is the retry mechanism; it is never walked twice
    - Nothing is cached; every call re-probes the live target

Usage:
    >>> resolver = Resolver(per_candidate_timeout=5.0)
    >>> target = await resolver.resolve(email_candidates, probe)
    >>> target.matched_candidate
    'input[type=email]'

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger

from .candidates import CandidateList
from .errors import CandidateExhaustedError, ProbeTransientError


# Default ceiling for a single candidate probe, in seconds
DEFAULT_PER_CANDIDATE_TIMEOUT = 5.0


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing one candidate."""
    matched: bool
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def miss(cls, **metadata: Any) -> "ProbeOutcome":
        return cls(False, dict(metadata))

    @classmethod
    def hit(cls, **metadata: Any) -> "ProbeOutcome":
        return cls(True, dict(metadata))


ProbeResult = Union[ProbeOutcome, bool]
AsyncProbe = Callable[[str, float], Awaitable[ProbeResult]]
SyncProbe = Callable[[str, float], ProbeResult]


@dataclass(frozen=True)
class ResolvedTarget:
    """
    A successful resolution.

    Attributes:
        logical_name: Name of the resolved element/operation
        matched_candidate: The one candidate that satisfied the probe
        metadata: Probe metadata (tag/visibility/text, or status/auth)
        attempted: Candidates tried before and including the match
    """
    logical_name: str
    matched_candidate: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    attempted: Tuple[str, ...] = ()

    @property
    def used_fallback(self) -> bool:
        return len(self.attempted) > 1


def _as_outcome(result: ProbeResult) -> ProbeOutcome:
    if isinstance(result, ProbeOutcome):
        return result
    return ProbeOutcome(bool(result))


class Resolver:
    """
    Resolve a CandidateList against a live target through a probe.

    Args:
        per_candidate_timeout: Ceiling in seconds for one probe call
    """

    def __init__(self, per_candidate_timeout: float = DEFAULT_PER_CANDIDATE_TIMEOUT):
        if per_candidate_timeout <= 0:
            raise ValueError("per_candidate_timeout must be positive")
        self.per_candidate_timeout = float(per_candidate_timeout)

    async def resolve(
        self,
        candidate_list: CandidateList,
        probe: AsyncProbe,
    ) -> ResolvedTarget:
        """
        Return the first candidate the probe accepts.

        Raises:
            CandidateExhaustedError: When every candidate failed
        """
        attempted: List[str] = []
        started = time.monotonic()

        for candidate in candidate_list:
            attempted.append(candidate)
            outcome = await self._probe_async(probe, candidate)
            if outcome.matched:
                return self._resolved(candidate_list, candidate, outcome, attempted, started)

        self._log_exhausted(candidate_list, started)
        raise CandidateExhaustedError(candidate_list.logical_name, candidate_list.candidates)

    def resolve_sync(
        self,
        candidate_list: CandidateList,
        probe: SyncProbe,
    ) -> ResolvedTarget:
        """
        Synchronous variant of `resolve`.

        The probe receives the timeout and must enforce it itself (e.g. via
        the HTTP client's request timeout); blocking calls cannot be cancelled.
        """
        attempted: List[str] = []
        started = time.monotonic()

        for candidate in candidate_list:
            attempted.append(candidate)
            try:
                outcome = _as_outcome(probe(candidate, self.per_candidate_timeout))
            except Exception as e:
                self._log_probe_failure(candidate_list, candidate, e)
                continue
            if outcome.matched:
                return self._resolved(candidate_list, candidate, outcome, attempted, started)

        self._log_exhausted(candidate_list, started)
        raise CandidateExhaustedError(candidate_list.logical_name, candidate_list.candidates)

    async def try_resolve(
        self,
        candidate_list: CandidateList,
        probe: AsyncProbe,
    ) -> Optional[ResolvedTarget]:
        """Like `resolve` but returns None when nothing matched."""
        try:
            return await self.resolve(candidate_list, probe)
        except CandidateExhaustedError:
            return None

    def try_resolve_sync(
        self,
        candidate_list: CandidateList,
        probe: SyncProbe,
    ) -> Optional[ResolvedTarget]:
        try:
            return self.resolve_sync(candidate_list, probe)
        except CandidateExhaustedError:
            return None

    # =========================================================================
    # Internals
    # =========================================================================

    async def _probe_async(self, probe: AsyncProbe, candidate: str) -> ProbeOutcome:
        try:
            result = probe(candidate, self.per_candidate_timeout)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=self.per_candidate_timeout)
            return _as_outcome(result)
        except asyncio.TimeoutError:
            logger.debug(
                f"Candidate {candidate!r} timed out after {self.per_candidate_timeout}s"
            )
        except ProbeTransientError as e:
            logger.debug(f"Candidate {candidate!r} probe failed: {e.reason or e}")
        except Exception as e:
            logger.debug(f"Candidate {candidate!r} raised {type(e).__name__}: {str(e)[:80]}")
        return ProbeOutcome(False)

    def _log_probe_failure(
        self,
        candidate_list: CandidateList,
        candidate: str,
        error: Exception,
    ) -> None:
        logger.debug(
            f"[{candidate_list.logical_name}] candidate {candidate!r} raised "
            f"{type(error).__name__}: {str(error)[:80]}"
        )

    def _resolved(
        self,
        candidate_list: CandidateList,
        candidate: str,
        outcome: ProbeOutcome,
        attempted: List[str],
        started: float,
    ) -> ResolvedTarget:
        elapsed = time.monotonic() - started
        if candidate != candidate_list.primary:
            logger.warning(
                f"⚠️ '{candidate_list.logical_name}' used fallback: {candidate} "
                f"(primary {candidate_list.primary} did not match)"
            )
        else:
            logger.debug(f"✅ '{candidate_list.logical_name}' found: {candidate} ({elapsed:.2f}s)")
        return ResolvedTarget(
            logical_name=candidate_list.logical_name,
            matched_candidate=candidate,
            metadata=dict(outcome.metadata),
            attempted=tuple(attempted),
        )

    def _log_exhausted(self, candidate_list: CandidateList, started: float) -> None:
        logger.error(
            f"❌ All {len(candidate_list)} candidates failed for "
            f"'{candidate_list.logical_name}' after {time.monotonic() - started:.2f}s: "
            + ", ".join(candidate_list.candidates)
        )


__all__ = [
    "DEFAULT_PER_CANDIDATE_TIMEOUT",
    "ProbeOutcome",
    "ResolvedTarget",
    "Resolver",
]
