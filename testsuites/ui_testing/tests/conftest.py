"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for browser
management, page objects, and test setup/teardown.

Key Features:
- Browser and page lifecycle management (one browser context per test)
- Page Object fixtures
- Failure capture: screenshot, URL, recent API calls, locator health

================================================================================
"""

from typing import AsyncGenerator

import pytest
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from apprabbit_tools.common import get_config
from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.framework.page_base import BasePage
from testsuites.ui_testing.pages.dashboard_page import DashboardPage
from testsuites.ui_testing.pages.login_page import LoginPage


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
def base_url() -> str:
    return get_config("ui.base_url", "https://app.apprabbit.com")


@pytest.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    """
    Browser manager owned by a single test.

    Each test (and each xdist worker) gets its own browser and never
    shares a page with another flow.
    """
    async with BrowserManager() as manager:
        yield manager


@pytest.fixture
async def page(request, browser_manager: BrowserManager, base_url: str) -> AsyncGenerator[Page, None]:
    """
    Fresh page in an isolated context.

    On failure, captures debugging details before the browser closes and
    stores the screenshot path on the test item for the Jira hook.
    """
    page = await browser_manager.new_page()
    yield page

    rep_call = getattr(request.node, "rep_call", None)
    if rep_call is not None and rep_call.failed:
        try:
            screenshot = await BasePage(page, base_url=base_url).capture_failure(request.node.name)
            request.node.failure_screenshot = str(screenshot)
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Failed to capture failure details: {e}")


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(page: Page, base_url: str) -> LoginPage:
    return LoginPage(page, base_url=base_url)


@pytest.fixture
def dashboard_page(page: Page, base_url: str) -> DashboardPage:
    return DashboardPage(page, base_url=base_url)


# ================================================================================
# Authentication Fixtures
# ================================================================================

@pytest.fixture
async def authenticated_dashboard(
    login_page: LoginPage,
    dashboard_page: DashboardPage,
) -> DashboardPage:
    """
    Provides DashboardPage with an authenticated session.
    """
    await login_page.open()
    await login_page.login_with_valid_credentials()
    await login_page.expect_redirect_after_login()
    await dashboard_page.wait_for_dashboard()
    return dashboard_page
