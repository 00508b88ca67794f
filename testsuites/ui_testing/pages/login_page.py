"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Async-first Login Page Object.

Every element resolves through the LOGIN_PAGE discovery catalog: the
candidate selectors are tried in order and the first visible one wins.
Credentials default to `auth.email` / `auth.password` from configuration.

================================================================================
"""

from __future__ import annotations

import re
from typing import Optional

import allure
from loguru import logger

from apprabbit_tools.common import get_config
from apprabbit_tools.discovery.catalogs import LOGIN_PAGE
from apprabbit_tools.resolution import CandidateExhaustedError
from testsuites.ui_testing.framework.page_base import PageBase


INVALID_EMAIL = "invalid@email.com"
INVALID_PASSWORD = "wrongpassword"


class LoginPage(PageBase):
    """Login page object (async)."""

    URL_PATH = LOGIN_PAGE.url_path

    EMAIL_INPUT = LOGIN_PAGE.candidates("email_input")
    PASSWORD_INPUT = LOGIN_PAGE.candidates("password_input")
    LOGIN_BUTTON = LOGIN_PAGE.candidates("login_button")
    ERROR_MESSAGE = LOGIN_PAGE.candidates("error_message")
    FORGOT_PASSWORD_LINK = LOGIN_PAGE.candidates("forgot_password_link")

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        """Navigate to the login page."""
        await self.navigate()
        await self.wait_for_page_load()
        return self

    @allure.step("Login (email={email})")
    async def login(self, email: str, password: str) -> None:
        """Fill credentials and submit the form."""
        await self.fill(self.EMAIL_INPUT, email)
        await self.fill(self.PASSWORD_INPUT, password)
        await self.click(self.LOGIN_BUTTON)

    async def login_with_valid_credentials(self) -> None:
        await self.login(
            get_config("auth.email", "test@example.com"),
            get_config("auth.password", "password123"),
        )

    async def login_with_invalid_credentials(self) -> None:
        await self.login(INVALID_EMAIL, INVALID_PASSWORD)

    @allure.step("Click forgot password")
    async def click_forgot_password(self) -> None:
        await self.click(self.FORGOT_PASSWORD_LINK)

    @allure.step("Verify login form is displayed")
    async def verify_form_displayed(self) -> bool:
        """Verify email, password and submit elements are visible."""
        for candidates in (self.EMAIL_INPUT, self.PASSWORD_INPUT, self.LOGIN_BUTTON):
            if not await self.is_visible(candidates, timeout=2000):
                logger.warning(f"Login form element missing: {candidates.logical_name}")
                return False
        return True

    async def expect_login_form_visible(self) -> None:
        """Hard assertion helper; failures name every selector tried."""
        await self.expect_element_visible(self.EMAIL_INPUT)
        await self.expect_element_visible(self.PASSWORD_INPUT)
        await self.expect_element_visible(self.LOGIN_BUTTON)

    async def get_error_message(self) -> Optional[str]:
        """Error text, or None when no error element is visible."""
        try:
            return (await self.get_text(self.ERROR_MESSAGE, timeout=3000)).strip()
        except CandidateExhaustedError:
            return None

    @allure.step("Verify error message")
    async def expect_error_message(self, expected_message: Optional[str] = None) -> None:
        await self.expect_element_visible(self.ERROR_MESSAGE)
        if expected_message:
            actual = await self.get_error_message()
            assert actual and expected_message in actual, (
                f'Expected error message to contain "{expected_message}", but got "{actual}"'
            )

    @allure.step("Verify redirect after login")
    async def expect_redirect_after_login(self, expected_url: Optional[str] = None) -> None:
        """Wait until the browser leaves /login, then optionally check the URL."""
        await self.wait_for_url(re.compile(r"^(?!.*/login).*$"), timeout=10000)
        if expected_url:
            await self.expect_url(expected_url)

    async def is_login_form_visible(self) -> bool:
        try:
            await self.expect_login_form_visible()
            return True
        except (CandidateExhaustedError, AssertionError):
            return False
