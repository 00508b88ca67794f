"""
================================================================================
Jira Integration Module
================================================================================

Files bugs for failed automated tests and reports test runs to Jira.

Exports:
    - JiraClient: REST client for issue creation, links and transitions
    - TestFailure / TestRunSummary: report payloads
    - JiraClientError: raised on failed Jira calls

================================================================================
"""

from .jira_client import JiraClient, JiraClientError, TestFailure, TestRunSummary

__all__ = [
    "JiraClient",
    "JiraClientError",
    "TestFailure",
    "TestRunSummary",
]
