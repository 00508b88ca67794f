"""
================================================================================
Dashboard Page Object (Async / Playwright)
================================================================================

Async-first Dashboard Page Object backed by the DASHBOARD_PAGE discovery
catalog (ordered candidate selectors per element).

================================================================================
"""

from __future__ import annotations

from typing import Optional

import allure

from apprabbit_tools.discovery.catalogs import DASHBOARD_PAGE
from apprabbit_tools.resolution import CandidateExhaustedError
from testsuites.ui_testing.framework.page_base import PageBase


class DashboardPage(PageBase):
    """Dashboard page object (async)."""

    URL_PATH = DASHBOARD_PAGE.url_path

    DASHBOARD_CONTAINER = DASHBOARD_PAGE.candidates("dashboard_container")
    USER_MENU = DASHBOARD_PAGE.candidates("user_menu")
    NAVIGATION_MENU = DASHBOARD_PAGE.candidates("navigation_menu")
    LOGOUT_BUTTON = DASHBOARD_PAGE.candidates("logout_button")
    APPS_SECTION = DASHBOARD_PAGE.candidates("apps_section")

    @allure.step("Open dashboard")
    async def open(self) -> "DashboardPage":
        await self.navigate()
        await self.wait_for_page_load()
        return self

    @allure.step("Wait for dashboard")
    async def wait_for_dashboard(self) -> None:
        await self.smart.locate(self.DASHBOARD_CONTAINER, timeout=15000)

    async def open_user_menu(self) -> None:
        await self.click(self.USER_MENU)

    @allure.step("Logout")
    async def logout(self) -> None:
        await self.open_user_menu()
        await self.click(self.LOGOUT_BUTTON)

    async def navigate_to_apps(self) -> None:
        await self.click(self.APPS_SECTION)

    @allure.step("Verify dashboard loaded")
    async def expect_dashboard_loaded(self) -> None:
        await self.expect_element_visible(self.DASHBOARD_CONTAINER)
        await self.expect_element_visible(self.NAVIGATION_MENU)

    async def expect_user_logged_in(self) -> None:
        await self.expect_element_visible(self.USER_MENU)

    async def get_user_name(self) -> Optional[str]:
        try:
            return (await self.get_text(self.USER_MENU)).strip()
        except CandidateExhaustedError:
            return None

    async def is_dashboard_loaded(self) -> bool:
        try:
            await self.expect_dashboard_loaded()
            return True
        except (CandidateExhaustedError, AssertionError):
            return False
