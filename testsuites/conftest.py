"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and files Jira bugs for failed live tests when
`jira.enabled` is set.

================================================================================
"""

import pytest
from loguru import logger

from apprabbit_tools.common import get_flag
from apprabbit_tools.jira_integration import JiraClient, JiraClientError, TestFailure


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )
    config.addinivalue_line(
        "markers", "unit: Offline tests, no live target"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "api: API-specific tests"
    )
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "discovery: Selector and endpoint discovery"
    )
    config.addinivalue_line(
        "markers", "resolution: Ordered-fallback locator resolution"
    )


def pytest_collection_modifyitems(config, items):
    """
    Add suite markers from the test location.
    """
    for item in items:
        parts = item.path.parts
        if "api_testing" in parts:
            item.add_marker(pytest.mark.api)
        if "ui_testing" in parts:
            item.add_marker(pytest.mark.ui)
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Keep each phase report on the item (`rep_setup`, `rep_call`,
    `rep_teardown`) and file a Jira bug once a failed live test is torn down.

    Filing waits for teardown so the UI page fixture has captured the
    failure screenshot.
    """
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)

    if report.when != "teardown":
        return

    rep_call = getattr(item, "rep_call", None)
    if rep_call is None or not rep_call.failed:
        return
    if "unit" in item.keywords or not get_flag("jira.enabled", False):
        return

    _file_jira_bug(item, rep_call)


def _file_jira_bug(item, rep_call) -> None:
    crash = getattr(rep_call.longrepr, "reprcrash", None)
    failure = TestFailure(
        test_name=item.name,
        test_file=item.nodeid.split("::")[0],
        error=crash.message if crash else str(rep_call.longrepr)[:2000],
        stack_trace=rep_call.longreprtext,
        screenshot=getattr(item, "failure_screenshot", None),
        duration_ms=rep_call.duration * 1000,
    )
    try:
        JiraClient().create_bug_from_test_failure(failure)
    except JiraClientError as e:
        logger.error(f"Failed to file Jira bug for {item.name}: {e}")


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "AppRabbit Test Automation (discovery + resilient locators)",
        "=" * 60,
        "",
    ]
