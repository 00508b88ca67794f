"""
================================================================================
Base Page Object
================================================================================

Common base for the hand-written page objects and for the page objects
generated by discovery.

Provides:
    - Navigation relative to the configured UI base URL
    - Element actions that resolve a logical name or CandidateList through
      SmartLocator (first visible candidate wins)
    - Failure capture: screenshot, current URL, recent XHR traffic and the
      locator health report, attached to Allure

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, Union

import allure
from loguru import logger
from playwright.async_api import Page, Response, expect

from apprabbit_tools.common import get_config
from apprabbit_tools.resolution import CandidateList

from .smart_locator import SmartLocator


DEFAULT_SCREENSHOT_DIR = Path(__file__).resolve().parents[3] / "reports" / "ui" / "screenshots"

# XHR/fetch responses kept for failure reports
MAX_TRACKED_RESPONSES = 20

ElementTarget = Union[str, CandidateList]


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"
            EMAIL_INPUT = LOGIN_PAGE.candidates("email_input")

            async def enter_email(self, email: str):
                await self.fill(self.EMAIL_INPUT, email)
    """

    URL_PATH: str = "/"

    def __init__(self, page: Page, base_url: str = ""):
        """
        Args:
            page: Playwright page owned by the current test
            base_url: Application URL, defaults to `ui.base_url`
        """
        self.page = page
        self.base_url = (base_url or get_config("ui.base_url", "https://app.apprabbit.com")).rstrip("/")
        self.smart = SmartLocator(page)

        self._responses: Deque[Dict[str, Any]] = deque(maxlen=MAX_TRACKED_RESPONSES)
        self.page.on("response", self._track_response)

    def _track_response(self, response: Response) -> None:
        if response.request.resource_type in ("xhr", "fetch"):
            self._responses.append({
                "method": response.request.method,
                "url": response.url,
                "status": response.status,
            })

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.URL_PATH}"

    async def navigate(self, wait_until: str = "networkidle") -> None:
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.page.goto(self.url, wait_until=wait_until)
            logger.debug(f"Navigated to: {self.url}")

    async def navigate_to(self, path: str, wait_until: str = "networkidle") -> None:
        """Open a path relative to the base URL."""
        with allure.step(f"Navigate to {path}"):
            await self.page.goto(f"{self.base_url}{path}", wait_until=wait_until)

    async def wait_for_page_load(self, state: str = "networkidle", timeout: int = 15000) -> None:
        await self.page.wait_for_load_state(state, timeout=timeout)

    # =========================================================================
    # Element actions
    # =========================================================================

    @staticmethod
    def _name(target: ElementTarget) -> str:
        return target.logical_name if isinstance(target, CandidateList) else target

    async def click(self, target: ElementTarget, timeout: int = 5000, **kwargs: Any) -> None:
        with allure.step(f"Click: {self._name(target)}"):
            await self.smart.click(target, timeout, **kwargs)

    async def fill(self, target: ElementTarget, value: str, timeout: int = 5000, **kwargs: Any) -> None:
        """Fill an input; values of password fields are masked in the report."""
        name = self._name(target)
        shown = "*" * len(value) if "password" in name.lower() else value
        with allure.step(f"Fill {name}: {shown}"):
            await self.smart.fill(target, value, timeout, **kwargs)

    async def get_text(self, target: ElementTarget, timeout: int = 5000) -> str:
        return await self.smart.get_text(target, timeout)

    async def is_visible(self, target: ElementTarget, timeout: int = 2000) -> bool:
        return await self.smart.is_visible(target, timeout)

    # =========================================================================
    # Waits and assertions
    # =========================================================================

    async def wait_for_url(self, url_pattern: Any, timeout: int = 10000) -> None:
        """Wait for the URL to match a glob, regex or predicate."""
        with allure.step(f"Wait for URL: {url_pattern}"):
            await self.page.wait_for_url(url_pattern, timeout=timeout)

    async def expect_element_visible(self, target: ElementTarget, timeout: int = 5000) -> None:
        """
        Assert the element is visible.

        Raises CandidateExhaustedError (listing every selector tried) when no
        candidate resolves.
        """
        locator = await self.smart.locate(target, timeout=timeout)
        await expect(locator).to_be_visible()

    async def expect_url(self, url: Any) -> None:
        await expect(self.page).to_have_url(url)

    # =========================================================================
    # Failure capture
    # =========================================================================

    @property
    def screenshot_dir(self) -> Path:
        return Path(get_config("ui.screenshot_dir", DEFAULT_SCREENSHOT_DIR))

    async def screenshot(self, name: str, full_page: bool = False) -> Path:
        """Save a PNG under `ui.screenshot_dir` and attach it to Allure."""
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"{name}_{datetime.now():%Y%m%d_%H%M%S}.png"

        await self.page.screenshot(path=str(path), full_page=full_page)
        allure.attach.file(str(path), name=name, attachment_type=allure.attachment_type.PNG)

        logger.debug(f"📸 Screenshot saved: {path}")
        return path

    async def capture_failure(self, test_name: str) -> Path:
        """
        Attach debugging context for a failed test.

        Returns the screenshot path so the failure hook can upload it to the
        Jira bug.
        """
        with allure.step("Capture failure details"):
            path = await self.screenshot(f"failure_{test_name}", full_page=True)
            allure.attach(self.page.url, name="Current URL", attachment_type=allure.attachment_type.TEXT)
            if self._responses:
                allure.attach(
                    json.dumps(list(self._responses), indent=2),
                    name="Recent API Requests",
                    attachment_type=allure.attachment_type.JSON,
                )
            allure.attach(
                self.get_locator_health_report(),
                name="Locator Health",
                attachment_type=allure.attachment_type.TEXT,
            )
        return path

    def get_locator_health_report(self) -> str:
        return self.smart.get_health_report()


# Name used by generated page objects
PageBase = BasePage

__all__ = [
    "BasePage",
    "PageBase",
    "DEFAULT_SCREENSHOT_DIR",
]
