"""
================================================================================
Browser Manager
================================================================================

Owns one Playwright browser and hands out isolated contexts.

Each UI test and each discovery run gets its own context (cookies, storage
and page are never shared). Browser type, headless mode, viewport and the
default action timeout come from the `ui.*` configuration.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from apprabbit_tools.common import get_config, get_flag


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Async context manager around a Playwright browser.

    Usage:
        async with BrowserManager(headless=False) as manager:
            page = await manager.new_page()
            await page.goto("https://app.apprabbit.com/login")
    """

    LAUNCH_ARGS = ["--ignore-certificate-errors"]

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
        default_timeout: Optional[int] = None,
    ):
        """
        Args:
            headless: Defaults to `ui.headless`
            browser_type: chromium / firefox / webkit, defaults to `ui.browser`
            default_timeout: Action timeout in ms for new pages, defaults to `ui.default_timeout`
        """
        self.headless = get_flag("ui.headless", True) if headless is None else headless
        self.browser_type = (browser_type or get_config("ui.browser", "chromium")).lower()
        if self.browser_type not in SUPPORTED_BROWSERS:
            raise ValueError(
                f"Unsupported browser '{self.browser_type}', expected one of {SUPPORTED_BROWSERS}"
            )
        self.default_timeout = int(default_timeout or get_config("ui.default_timeout", 30000))

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    async def start(self) -> Browser:
        if self._browser:
            return self._browser

        self._playwright = await async_playwright().start()
        launcher = getattr(self._playwright, self.browser_type)
        self._browser = await launcher.launch(headless=self.headless, args=self.LAUNCH_ARGS)
        logger.debug(f"🌐 Launched {self.browser_type} (headless={self.headless})")
        return self._browser

    async def close(self) -> None:
        """Close every context handed out, then the browser."""
        while self._contexts:
            context = self._contexts.pop()
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context already closed: {e}")

        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    def _context_options(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        viewport = get_config("ui.viewport", {"width": 1920, "height": 1080})
        return {"viewport": viewport, "ignore_https_errors": True, **overrides}

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Open an isolated context. Keyword options go to `Browser.new_context`.
        """
        if not self._browser:
            raise RuntimeError("Browser not started; use `async with BrowserManager()`")

        context = await self._browser.new_context(**self._context_options(options))
        context.set_default_timeout(self.default_timeout)
        self._contexts.append(context)
        return context

    async def new_page(self, **context_options: Any) -> Page:
        """Open a page in a fresh context owned by the caller."""
        context = await self.new_context(**context_options)
        return await context.new_page()


__all__ = [
    "SUPPORTED_BROWSERS",
    "BrowserManager",
]
