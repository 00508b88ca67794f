"""
================================================================================
UI Selector Prober
================================================================================

Walks a page catalog against a live Playwright page and records which
candidate selector currently matches each logical element.

Discovery uses an *existence* probe (the element is attached to the DOM,
not necessarily visible), so elements such as hidden error containers are
still recorded. The first candidate in declared order wins; elements with
no match are logged and recorded as absent without aborting the run.

Usage:
    async with BrowserManager() as manager:
        page = await manager.new_page()
        prober = SelectorProber(page, base_url="https://app.apprabbit.com")
        record = await prober.discover(LOGIN_PAGE)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import allure
from loguru import logger
from playwright.async_api import Page

from apprabbit_tools.resolution import ProbeOutcome, ProbeTransientError, Resolver

from .catalogs import PageSpec
from .models import DiscoveryEntry, DiscoveryRecord


# Existence checks do not wait for elements to appear
DEFAULT_EXISTENCE_TIMEOUT = 2.0

# Characters of visible text kept in the audit record
MAX_TEXT_LENGTH = 100


class SelectorProber:
    """
    Discover working selectors for the elements of one or more pages.

    Args:
        page: Playwright page owned by this discovery run
        base_url: Application base URL prepended to each page path
        resolver: Resolver used for the ordered walk (existence timeout default)
        navigation_timeout: Page load timeout in milliseconds
    """

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        resolver: Optional[Resolver] = None,
        navigation_timeout: int = 30000,
    ):
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.resolver = resolver or Resolver(per_candidate_timeout=DEFAULT_EXISTENCE_TIMEOUT)
        self.navigation_timeout = navigation_timeout

    async def discover(self, page_spec: PageSpec, navigate: bool = True) -> DiscoveryRecord:
        """
        Probe every element of `page_spec`.

        Args:
            page_spec: Page catalog to walk
            navigate: Open the page URL first; pass False when the caller
                already brought the page into the required state (e.g. logged in)

        Returns:
            DiscoveryRecord covering every element of the catalog
        """
        logger.info(f"🔍 Discovering {page_spec.page_name} selectors...")

        with allure.step(f"Discover selectors: {page_spec.page_name}"):
            if navigate:
                await self._navigate(page_spec)

            entries: List[DiscoveryEntry] = []
            for element in page_spec.elements:
                target = await self.resolver.try_resolve(element.candidates, self.probe_exists)
                if target is None:
                    logger.info(f"❌ Could not find {element.name}")
                    entries.append(DiscoveryEntry(element.candidates, role=element.role))
                    continue

                logger.info(f"✅ Found {element.name}: {target.matched_candidate}")
                entries.append(
                    DiscoveryEntry(
                        element.candidates,
                        matched_candidate=target.matched_candidate,
                        metadata=target.metadata,
                        role=element.role,
                    )
                )

        record = DiscoveryRecord(
            page_name=page_spec.page_name,
            url=page_spec.url_path,
            base_url=self.base_url,
            entries=tuple(entries),
        )
        logger.info(
            f"{page_spec.page_name}: {len(record.found)}/{len(record.entries)} elements found"
        )
        return record

    async def discover_all(
        self,
        page_specs: Iterable[PageSpec],
        navigate: bool = True,
    ) -> List[DiscoveryRecord]:
        """Discover pages one after another on the same page instance."""
        return [await self.discover(spec, navigate=navigate) for spec in page_specs]

    async def probe_exists(self, selector: str, timeout: float) -> ProbeOutcome:
        """
        Existence probe for a single selector.

        Returns a hit with tag / visible / text metadata when an element
        matching `selector` is attached to the DOM.
        """
        try:
            handle = await self.page.query_selector(selector)
        except Exception as e:
            raise ProbeTransientError(selector, str(e)[:80]) from e

        if handle is None:
            return ProbeOutcome.miss()

        try:
            tag = await handle.evaluate("el => el.tagName.toLowerCase()")
            visible = await handle.is_visible()
            text = (await handle.text_content() or "").strip()
        finally:
            await handle.dispose()

        return ProbeOutcome.hit(
            tag=tag,
            visible=visible,
            text=text[:MAX_TEXT_LENGTH] or None,
        )

    async def _navigate(self, page_spec: PageSpec) -> None:
        url = f"{self.base_url}{page_spec.url_path}"
        try:
            await self.page.goto(url, timeout=self.navigation_timeout)
            logger.debug(f"Navigated to: {url}")
        except Exception as e:
            # Elements will simply be recorded as absent
            logger.error(f"Navigation to {url} failed: {e}")


__all__ = [
    "DEFAULT_EXISTENCE_TIMEOUT",
    "SelectorProber",
]
