"""
================================================================================
Selector Discovery UI Tests (Async / Playwright)
================================================================================

Runs discovery against the live login page and attaches the audit record
and generated page object to the report.

================================================================================
"""

from pathlib import Path

import allure
import pytest
from playwright.async_api import Page

from apprabbit_tools.discovery import LOGIN_PAGE, ArtifactEmitter, SelectorProber
from apprabbit_tools.report_tools import attach_discovery_artifacts


@allure.epic("UI Testing")
@allure.feature("Discovery")
class TestSelectorDiscovery:

    @allure.story("Login Page")
    @allure.title("Login page discovery finds the form elements")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P1
    @pytest.mark.discovery
    @pytest.mark.asyncio
    async def test_discover_login_page(self, page: Page, base_url: str, tmp_path: Path):
        record = await SelectorProber(page, base_url=base_url).discover(LOGIN_PAGE)

        artifacts = ArtifactEmitter(tmp_path).emit(record)
        attach_discovery_artifacts(artifacts)

        assert len(record.entries) == len(LOGIN_PAGE.elements)
        found = {entry.logical_name for entry in record.found}
        assert {"email_input", "password_input", "login_button"} <= found
        assert "class LoginPage(PageBase):" in artifacts.stub_text
