"""
================================================================================
Discovery Catalogs
================================================================================

Fixed catalogs of the things discovery looks for:

    - UI: per page, the logical elements of interest and their candidate
      selectors (most stable first)
    - API: the path templates probed with each HTTP verb

The page objects under `testsuites/ui_testing/pages` resolve their elements
through these same candidate lists at runtime.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from apprabbit_tools.resolution import CandidateList


# Element roles drive which action wrappers a generated stub gets
ROLE_INPUT = "input"
ROLE_BUTTON = "button"
ROLE_LINK = "link"
ROLE_MESSAGE = "message"
ROLE_CONTAINER = "container"

ROLES = (ROLE_INPUT, ROLE_BUTTON, ROLE_LINK, ROLE_MESSAGE, ROLE_CONTAINER)


@dataclass(frozen=True)
class ElementSpec:
    """One logical element of a page catalog."""
    candidates: CandidateList
    role: str = ROLE_CONTAINER

    @property
    def name(self) -> str:
        return self.candidates.logical_name


@dataclass(frozen=True)
class PageSpec:
    """A page and the elements discovery looks for on it."""
    page_name: str
    url_path: str
    elements: Tuple[ElementSpec, ...]

    def element(self, name: str) -> ElementSpec:
        for spec in self.elements:
            if spec.name == name:
                return spec
        raise KeyError(f"{self.page_name} has no element '{name}'")

    def candidates(self, name: str) -> CandidateList:
        return self.element(name).candidates


def _element(name: str, role: str, *selectors: str) -> ElementSpec:
    return ElementSpec(CandidateList(name, selectors), role)


# =============================================================================
# UI catalogs
# =============================================================================

LOGIN_PAGE = PageSpec(
    page_name="LoginPage",
    url_path="/login",
    elements=(
        _element(
            "email_input", ROLE_INPUT,
            'input[type="email"]',
            'input[name="email"]',
            "#email",
            ".email-input",
            '[data-testid="email"]',
            'input[placeholder*="email" i]',
        ),
        _element(
            "password_input", ROLE_INPUT,
            'input[type="password"]',
            'input[name="password"]',
            "#password",
            ".password-input",
            '[data-testid="password"]',
            'input[placeholder*="password" i]',
        ),
        _element(
            "login_button", ROLE_BUTTON,
            'button[type="submit"]',
            'input[type="submit"]',
            ".login-button",
            "#login-btn",
            '[data-testid="login-button"]',
            'button:has-text("Login")',
            'button:has-text("Sign In")',
            'button:has-text("Log In")',
        ),
        _element(
            "error_message", ROLE_MESSAGE,
            ".error",
            ".alert-danger",
            ".error-message",
            '[data-testid="error"]',
            ".notification.error",
            ".toast.error",
            ".alert.error",
        ),
        _element(
            "forgot_password_link", ROLE_LINK,
            'a[href*="forgot"]',
            ".forgot-password",
            '[data-testid="forgot-password"]',
            'a:has-text("Forgot")',
            'a:has-text("Reset")',
        ),
    ),
)

DASHBOARD_PAGE = PageSpec(
    page_name="DashboardPage",
    url_path="/dashboard",
    elements=(
        _element(
            "dashboard_container", ROLE_CONTAINER,
            ".dashboard",
            "#dashboard",
            '[data-testid="dashboard"]',
            ".main-content",
            ".app-content",
            ".dashboard-content",
        ),
        _element(
            "user_menu", ROLE_BUTTON,
            ".user-menu",
            ".profile-dropdown",
            '[data-testid="user-menu"]',
            ".avatar",
            ".user-avatar",
            ".profile-avatar",
        ),
        _element(
            "navigation_menu", ROLE_CONTAINER,
            ".nav",
            ".navigation",
            ".sidebar",
            '[data-testid="navigation"]',
            ".main-nav",
            ".side-nav",
        ),
        _element(
            "logout_button", ROLE_BUTTON,
            'button:has-text("Logout")',
            'button:has-text("Sign Out")',
            'a:has-text("Logout")',
            '[data-testid="logout"]',
            ".logout-button",
        ),
        _element(
            "apps_section", ROLE_LINK,
            ".apps",
            "#apps",
            '[data-testid="apps"]',
            ".applications",
            ".app-list",
        ),
    ),
)

PAGE_CATALOG: Dict[str, PageSpec] = {
    spec.page_name: spec for spec in (LOGIN_PAGE, DASHBOARD_PAGE)
}


# =============================================================================
# API catalog
# =============================================================================

API_PATHS: Tuple[str, ...] = (
    "/auth/login",
    "/auth/logout",
    "/auth/register",
    "/auth/forgot-password",
    "/user/profile",
    "/user/settings",
    "/apps",
    "/apps/:id",
    "/projects",
    "/projects/:id",
    "/api/v1/users",
    "/api/v1/auth",
    "/api/v1/projects",
)

API_METHODS: Tuple[str, ...] = ("GET", "POST")

ENDPOINT_DESCRIPTIONS: Dict[str, str] = {
    "/auth/login": "Authenticate user with email/password",
    "/auth/logout": "Logout current user session",
    "/auth/register": "Register new user account",
    "/user/profile": "Get/Update user profile information",
    "/apps": "List user applications",
    "/projects": "List user projects",
}

UNKNOWN_ENDPOINT_DESCRIPTION = "Unknown endpoint function"


def describe_endpoint(path: str) -> str:
    return ENDPOINT_DESCRIPTIONS.get(path, UNKNOWN_ENDPOINT_DESCRIPTION)


__all__ = [
    "ROLE_INPUT",
    "ROLE_BUTTON",
    "ROLE_LINK",
    "ROLE_MESSAGE",
    "ROLE_CONTAINER",
    "ROLES",
    "ElementSpec",
    "PageSpec",
    "LOGIN_PAGE",
    "DASHBOARD_PAGE",
    "PAGE_CATALOG",
    "API_PATHS",
    "API_METHODS",
    "ENDPOINT_DESCRIPTIONS",
    "describe_endpoint",
]
