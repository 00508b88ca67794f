"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework for the AppRabbit web app.

Components:
    - smart_locator: Element location through ordered candidate selectors
    - page_base: Base page object for common operations
    - browser_manager: Browser lifecycle management

Author: Automation Team
License: MIT
================================================================================
"""

from .smart_locator import SmartLocator
from .page_base import BasePage
from .browser_manager import BrowserManager

__all__ = [
    "SmartLocator",
    "BasePage",
    "BrowserManager",
]

