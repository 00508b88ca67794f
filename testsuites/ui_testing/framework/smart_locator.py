"""
================================================================================
Smart Locator with Ordered Fallbacks
================================================================================

Resilient element location for page objects:
    - Every logical element has an ordered CandidateList of selectors
    - Candidates are tried in order until one becomes visible
    - Fallback usage is recorded for maintenance insights
    - Exhaustion raises CandidateExhaustedError naming every selector tried

Candidate lists come from the discovery catalogs
(`apprabbit_tools.discovery.catalogs`) or are passed in directly by
generated page objects.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from playwright.async_api import Locator, Page

from apprabbit_tools.discovery.catalogs import PAGE_CATALOG
from apprabbit_tools.resolution import (
    CandidateExhaustedError,
    CandidateList,
    ProbeOutcome,
    ResolvedTarget,
    Resolver,
)


@dataclass
class LocatorHealth:
    """
    Tracks locator health and usage statistics.

    Attributes:
        element_name: Logical element name
        primary_selector: The preferred selector
        used_fallback: Whether a fallback was used
        fallback_selector: The fallback selector used (if any)
        attempts: Number of candidates probed
    """
    element_name: str
    primary_selector: str
    used_fallback: bool = False
    fallback_selector: Optional[str] = None
    attempts: int = 1


def _catalog_locators() -> Dict[str, CandidateList]:
    locators: Dict[str, CandidateList] = {}
    for spec in PAGE_CATALOG.values():
        for element in spec.elements:
            locators[element.name] = element.candidates
    return locators


class SmartLocator:
    """
    Smart element locator with ordered fallback strategies.

    Usage:
        >>> smart = SmartLocator(page)
        >>> await smart.click("login_button")
        >>> await smart.fill("email_input", "test@example.com")
        >>> await smart.locate(CandidateList("banner", [".banner", "#banner"]))

    Resolution is never cached: the DOM may change between calls, so every
    call re-probes from the first candidate.
    """

    # Logical element name -> candidate list (from the discovery catalogs)
    LOCATORS: Dict[str, CandidateList] = _catalog_locators()

    def __init__(self, page: Page):
        """
        Initialize SmartLocator with Playwright page.

        Args:
            page: Playwright Page object owned by the current test
        """
        self.page = page
        self._locators: Dict[str, CandidateList] = dict(self.LOCATORS)
        self._health_records: List[LocatorHealth] = []
        self._fallback_used: Dict[str, LocatorHealth] = {}

    def candidates_for(self, target: Union[str, CandidateList]) -> CandidateList:
        """Look up the candidate list for a logical name."""
        if isinstance(target, CandidateList):
            return target
        try:
            return self._locators[target]
        except KeyError:
            raise CandidateExhaustedError(target, ()) from None

    async def resolve(
        self,
        target: Union[str, CandidateList],
        timeout: int = 5000,
    ) -> ResolvedTarget:
        """
        Resolve an element to the first visible candidate.

        Args:
            target: Logical element name or a CandidateList
            timeout: Timeout in milliseconds for each candidate

        Raises:
            CandidateExhaustedError: When no candidate became visible
        """
        candidates = self.candidates_for(target)
        resolver = Resolver(per_candidate_timeout=timeout / 1000)
        resolved = await resolver.resolve(candidates, self._probe_visible)
        self._record_health(candidates, resolved)
        return resolved

    async def locate(
        self,
        target: Union[str, CandidateList],
        timeout: int = 5000,
    ) -> Locator:
        """
        Locate element using the ordered fallback strategy.

        Returns:
            Playwright Locator for the first visible candidate
        """
        resolved = await self.resolve(target, timeout=timeout)
        return self.page.locator(resolved.matched_candidate).first

    async def _probe_visible(self, selector: str, timeout: float) -> ProbeOutcome:
        locator = self.page.locator(selector).first
        await locator.wait_for(state="visible", timeout=timeout * 1000)
        return ProbeOutcome.hit(visible=True)

    def _record_health(self, candidates: CandidateList, resolved: ResolvedTarget) -> None:
        health = LocatorHealth(
            element_name=candidates.logical_name,
            primary_selector=candidates.primary,
            used_fallback=resolved.used_fallback,
            fallback_selector=resolved.matched_candidate if resolved.used_fallback else None,
            attempts=len(resolved.attempted),
        )
        self._health_records.append(health)
        if health.used_fallback:
            self._fallback_used[candidates.logical_name] = health

    async def click(
        self,
        target: Union[str, CandidateList],
        timeout: int = 5000,
        **kwargs: Any,
    ) -> None:
        """
        Click element using smart location.

        Args:
            target: Logical element name or CandidateList
            timeout: Timeout for element location
            **kwargs: Additional arguments passed to click()
        """
        locator = await self.locate(target, timeout=timeout)
        await locator.click(**kwargs)

    async def fill(
        self,
        target: Union[str, CandidateList],
        value: str,
        timeout: int = 5000,
        **kwargs: Any,
    ) -> None:
        """
        Fill input element using smart location.
        """
        locator = await self.locate(target, timeout=timeout)
        await locator.fill(value, **kwargs)

    async def get_text(
        self,
        target: Union[str, CandidateList],
        timeout: int = 5000,
    ) -> str:
        """
        Get text content of element.

        Returns:
            Text content of element
        """
        locator = await self.locate(target, timeout=timeout)
        return await locator.text_content() or ""

    async def is_visible(
        self,
        target: Union[str, CandidateList],
        timeout: int = 2000,
    ) -> bool:
        """
        Check if element is visible.

        Returns:
            True if element is visible, False otherwise
        """
        try:
            await self.resolve(target, timeout=timeout)
            return True
        except CandidateExhaustedError:
            return False

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists elements that needed a fallback selector (maintenance
        candidates for the primary selector).

        Returns:
            Formatted health report string
        """
        if not self._fallback_used:
            return "✅ All elements used primary locators. No maintenance needed."

        via_fallback = sum(1 for h in self._health_records if h.used_fallback)
        report_lines = [
            "⚠️ Locator Health Report - Fallbacks Used:",
            f"Lookups: {len(self._health_records)} ({via_fallback} via fallback)",
            "",
            "The following elements used fallback locators.",
            "Consider re-running discovery or updating the primary selectors:",
            "",
        ]

        for element_name, health in self._fallback_used.items():
            report_lines.extend([
                f"  [{element_name}]",
                f"    Failed primary: {health.primary_selector}",
                f"    Used: {health.fallback_selector} (attempt {health.attempts})",
                "",
            ])

        return "\n".join(report_lines)


__all__ = [
    "SmartLocator",
    "LocatorHealth",
]
