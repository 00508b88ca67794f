"""
Allure attachment and report helpers.
"""

from .allure_utils import (
    AllureReportProcessor,
    TestResultSummary,
    attach_discovery_artifacts,
    attach_json,
    attach_text,
)

__all__ = [
    "AllureReportProcessor",
    "TestResultSummary",
    "attach_discovery_artifacts",
    "attach_json",
    "attach_text",
]
