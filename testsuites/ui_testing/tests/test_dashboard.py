"""
================================================================================
Dashboard UI Tests (Async / Playwright)
================================================================================

Post-login validations via DashboardPage. Requires the configured test
account (`auth.email` / `auth.password`) to be valid on the target.

================================================================================
"""

import allure
import pytest

from testsuites.ui_testing.pages.dashboard_page import DashboardPage


@allure.epic("UI Testing")
@allure.feature("Dashboard")
class TestDashboard:
    """Dashboard UI test suite (async)."""

    @allure.story("Page Load")
    @allure.title("Dashboard loads after login")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_dashboard_loads(self, authenticated_dashboard: DashboardPage):
        await authenticated_dashboard.expect_dashboard_loaded()
        await authenticated_dashboard.expect_user_logged_in()

    @allure.story("User Menu")
    @allure.title("User menu shows the signed-in user")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P2
    @pytest.mark.asyncio
    async def test_user_name_displayed(self, authenticated_dashboard: DashboardPage):
        assert await authenticated_dashboard.get_user_name()

    @allure.story("Navigation")
    @allure.title("Apps section is reachable from the dashboard")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.asyncio
    async def test_navigate_to_apps(self, authenticated_dashboard: DashboardPage):
        await authenticated_dashboard.navigate_to_apps()
        await authenticated_dashboard.wait_for_page_load()

        assert "app" in authenticated_dashboard.page.url.lower()

    @allure.story("Logout")
    @allure.title("User can logout from dashboard")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_logout(self, authenticated_dashboard: DashboardPage):
        await authenticated_dashboard.logout()
        await authenticated_dashboard.wait_for_url("**/login**")

        assert not await authenticated_dashboard.is_dashboard_loaded()
