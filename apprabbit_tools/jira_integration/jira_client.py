"""
================================================================================
Jira REST Client
================================================================================

Files Jira issues for automated test failures and test-run summaries.

Key Features:
    - Bug creation from a failed test (priority, labels and components
      derived from the test name and file)
    - Screenshot attachment (attachment failures are logged, never raised)
    - Test execution report issues
    - Issue links and test-case status transitions
    - Retry with exponential backoff and rate limit handling

Usage:
    from apprabbit_tools.jira_integration import JiraClient, TestFailure

    client = JiraClient()
    key = client.create_bug_from_test_failure(TestFailure(
        test_name="test_login_with_valid_credentials",
        test_file="testsuites/ui_testing/tests/test_login.py",
        error="Timeout waiting for dashboard",
    ))

Author: Automation Team
License: MIT
================================================================================
"""

import math
import mimetypes
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from apprabbit_tools.common import get_config

# Seconds to wait on a 429 without a usable Retry-After, and the cap
DEFAULT_RETRY_AFTER = 5.0
MAX_RETRY_AFTER = 30.0


# ============================================================
# Data Models
# ============================================================

@dataclass
class TestFailure:
    """
    A failed automated test, as reported to Jira.
    """
    __test__ = False

    test_name: str
    test_file: str
    error: str
    stack_trace: Optional[str] = None
    screenshot: Optional[str] = None
    duration_ms: float = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def _path_tokens(self) -> set:
        return set(re.split(r"[\\/_.:\-]+", self.test_file.lower()))

    @property
    def is_api_test(self) -> bool:
        return "api" in self._path_tokens

    @property
    def is_ui_test(self) -> bool:
        return "ui" in self._path_tokens


@dataclass
class TestRunSummary:
    """Totals of one test run."""
    __test__ = False

    total: int
    passed: int
    failed: int
    duration_ms: float = 0

    @property
    def success_rate(self) -> int:
        if not self.total:
            return 0
        return round(self.passed / self.total * 100)


class JiraClientError(Exception):
    """Raised when a Jira API call fails."""
    pass


# ============================================================
# Jira API Client
# ============================================================

class JiraClient:
    """
    Thin client over the Jira REST API v2 with basic auth (email + API token).
    """

    API_PATH = "/rest/api/2"

    def __init__(
        self,
        url: str = None,
        email: str = None,
        api_token: str = None,
        project_key: str = None,
        timeout: int = 30,
        max_retries: int = 3,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initializes the Jira client.

        Args:
            url: Jira site URL. Defaults to `jira.url`.
            email: Account email. Defaults to `jira.email`.
            api_token: API token. Defaults to `jira.api_token`.
            project_key: Project for new issues. Defaults to `jira.project_key` or ALT.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of retry attempts.
            transport: Optional httpx transport (mock transports in unit tests).
        """
        url = url or get_config("jira.url", "")
        if url and not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        self.url = url.rstrip("/")
        self.email = email or get_config("jira.email", "")
        self.api_token = api_token or get_config("jira.api_token", "")
        self.project_key = project_key or get_config("jira.project_key", "ALT")

        if not (self.url and self.email and self.api_token):
            logger.warning("Jira credentials not configured. API calls will fail.")

        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    def _request(
        self,
        method: str,
        endpoint: str,
        json_body: Dict[str, Any] = None,
        files: Dict[str, Any] = None,
        headers: Dict[str, str] = None,
    ) -> Any:
        """
        Makes an API request with retry logic.

        Raises:
            JiraClientError: On a non-2xx response or when retries run out
        """
        url = f"{self.url}{self.API_PATH}/{endpoint}"

        for attempt in range(self.max_retries):
            try:
                with httpx.Client(
                    timeout=self.timeout,
                    auth=(self.email, self.api_token),
                    transport=self._transport,
                ) as client:
                    response = client.request(
                        method=method,
                        url=url,
                        headers={"Accept": "application/json", **(headers or {})},
                        json=json_body,
                        files=files,
                    )

                    if response.status_code == 429:
                        retry_after = self._retry_after(response)
                        logger.warning(f"Jira rate limited. Waiting {retry_after}s...")
                        time.sleep(retry_after)
                        continue

                    response.raise_for_status()
                    if not response.content:
                        return {}
                    try:
                        return response.json()
                    except ValueError as e:
                        raise JiraClientError(f"{method} {endpoint} returned invalid JSON") from e

            except httpx.HTTPStatusError as e:
                raise JiraClientError(
                    f"{method} {endpoint} failed with {e.response.status_code}: "
                    f"{e.response.text[:200]}"
                ) from e
            except httpx.HTTPError as e:
                logger.warning(f"Jira request failed (attempt {attempt + 1}): {e}")
                if attempt == self.max_retries - 1:
                    raise JiraClientError(f"{method} {endpoint} failed: {e}") from e
                time.sleep(2 ** attempt)

        raise JiraClientError(f"{method} {endpoint} still rate limited after {self.max_retries} attempts")

    @staticmethod
    def _retry_after(response: httpx.Response) -> float:
        """Seconds from a numeric Retry-After header; HTTP-dates fall back to the default."""
        try:
            wait = float(response.headers.get("Retry-After", DEFAULT_RETRY_AFTER))
        except ValueError:
            wait = DEFAULT_RETRY_AFTER
        if not math.isfinite(wait):
            wait = DEFAULT_RETRY_AFTER
        return min(max(wait, 0.0), MAX_RETRY_AFTER)

    # ------------------------------------------------------------
    # Bugs from test failures
    # ------------------------------------------------------------

    def create_bug_from_test_failure(self, failure: TestFailure) -> str:
        """
        Creates a Bug for a failed test and attaches its screenshot.

        Returns:
            The new issue key (e.g. "ALT-123")
        """
        issue = {
            "fields": {
                "project": {"key": self.project_key},
                "summary": f"Test Failure: {failure.test_name}",
                "description": self.format_failure_description(failure),
                "issuetype": {"name": "Bug"},
                "priority": {"name": self.determine_priority(failure)},
                "labels": self.generate_labels(failure),
                "components": self.determine_components(failure),
            }
        }

        key = self._request("POST", "issue", json_body=issue)["key"]

        if failure.screenshot:
            self.attach_screenshot(key, failure.screenshot)

        logger.info(f"🐛 Created Jira bug: {key}")
        return key

    def format_failure_description(self, failure: TestFailure) -> str:
        sections = [
            "## Test Failure Report",
            "",
            f"**Test Name:** {failure.test_name}",
            f"**Test File:** {failure.test_file}",
            f"**Timestamp:** {failure.timestamp.isoformat()}",
            f"**Duration:** {failure.duration_ms:.0f}ms",
            "",
            "## Error Details",
            "```",
            failure.error,
            "```",
        ]
        if failure.stack_trace:
            sections += ["", "## Stack Trace", "```", failure.stack_trace, "```"]
        sections += [
            "",
            "## Environment",
            f"- Test Type: {'API' if failure.is_api_test else 'UI'}",
            f"- Browser: {get_config('ui.browser', 'chromium') if failure.is_ui_test else 'N/A'}",
            f"- Base URL: {get_config('ui.base_url', '')}",
            "",
            "## Reproduction Steps",
            f"1. Run the failing test: `pytest {failure.test_file}`",
            "2. Check the error details above",
            "3. Review any attached screenshots",
            "",
            "## Additional Context",
            "This bug was automatically created from a failed automated test.",
        ]
        return "\n".join(sections)

    @staticmethod
    def determine_priority(failure: TestFailure) -> str:
        name = failure.test_name.lower()
        if "login" in name or "auth" in name:
            return "High"
        return "Medium"

    @staticmethod
    def generate_labels(failure: TestFailure) -> List[str]:
        labels = ["automated-test", "test-failure"]
        if failure.is_api_test:
            labels.append("api-test")
        if failure.is_ui_test:
            labels.append("ui-test")
        if "login" in failure.test_name.lower():
            labels.append("login")
        return labels

    @staticmethod
    def determine_components(failure: TestFailure) -> List[Dict[str, str]]:
        components = []
        if "login" in failure.test_name.lower():
            components.append({"name": "Authentication"})
        if failure.is_api_test:
            components.append({"name": "API"})
        if failure.is_ui_test:
            components.append({"name": "UI"})
        return components

    def attach_screenshot(self, issue_key: str, screenshot_path: str) -> bool:
        """
        Uploads a screenshot to an issue. Failures are logged only.
        """
        path = Path(screenshot_path)
        try:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            with open(path, "rb") as f:
                self._request(
                    "POST",
                    f"issue/{issue_key}/attachments",
                    files={"file": (path.name, f.read(), content_type)},
                    headers={"X-Atlassian-Token": "no-check"},
                )
        except (OSError, JiraClientError) as e:
            logger.error(f"Failed to attach screenshot to {issue_key}: {e}")
            return False

        logger.info(f"📎 Attached screenshot to {issue_key}")
        return True

    # ------------------------------------------------------------
    # Test runs and test cases
    # ------------------------------------------------------------

    def create_test_execution_issue(self, summary: TestRunSummary) -> str:
        """
        Creates a Task summarizing a test run.
        """
        now = datetime.now(timezone.utc)
        description = "\n".join([
            "## Test Execution Summary",
            "",
            f"**Total Tests:** {summary.total}",
            f"**Passed:** {summary.passed}",
            f"**Failed:** {summary.failed}",
            f"**Success Rate:** {summary.success_rate}%",
            f"**Duration:** {summary.duration_ms:.0f}ms",
            "",
            f"**Execution Date:** {now.isoformat()}",
        ])
        issue = {
            "fields": {
                "project": {"key": self.project_key},
                "summary": f"Test Execution Report - {now.date().isoformat()}",
                "description": description,
                "issuetype": {"name": "Task"},
                "labels": ["test-execution", "automated"],
            }
        }

        key = self._request("POST", "issue", json_body=issue)["key"]
        logger.info(f"📊 Created test execution report: {key}")
        return key

    def link_issues(self, inward_key: str, outward_key: str, link_type: str = "Relates") -> None:
        self._request(
            "POST",
            "issueLink",
            json_body={
                "type": {"name": link_type},
                "inwardIssue": {"key": inward_key},
                "outwardIssue": {"key": outward_key},
            },
        )

    def update_test_case(self, test_case_key: str, status: str, details: str = None) -> bool:
        """
        Transitions a test case to Passed/Failed with a comment.

        Args:
            test_case_key: Issue key of the test case
            status: "PASS" or "FAIL"
            details: Comment body; a timestamped default is used when omitted

        Returns:
            True when the transition was applied. Errors are logged only.
        """
        status = status.upper()
        if status not in ("PASS", "FAIL"):
            raise ValueError(f"status must be PASS or FAIL, got {status!r}")

        transition_name = "Passed" if status == "PASS" else "Failed"
        comment = details or f"Test {status.lower()}ed at {datetime.now(timezone.utc).isoformat()}"

        try:
            transitions = self._request("GET", f"issue/{test_case_key}/transitions")
            transition_id = next(
                (t["id"] for t in transitions.get("transitions", []) if t.get("name") == transition_name),
                None,
            )
            if transition_id is None:
                logger.error(f"No '{transition_name}' transition available for {test_case_key}")
                return False

            self._request(
                "POST",
                f"issue/{test_case_key}/transitions",
                json_body={
                    "transition": {"id": transition_id},
                    "update": {"comment": [{"add": {"body": comment}}]},
                },
            )
        except JiraClientError as e:
            logger.error(f"Failed to update test case {test_case_key}: {e}")
            return False

        return True
