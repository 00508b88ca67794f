"""
================================================================================
AppRabbit Tools
================================================================================

Automation utilities shared by the AppRabbit test suites.

Modules:
    - common: Shared configuration and logging utilities
    - resolution: Candidate lists and the ordered-fallback resolver
    - discovery: Selector/endpoint discovery and stub generation
    - jira_integration: Jira client for failure bugs and run reports
    - report_tools: Allure attachments and result summaries

Example:
    from apprabbit_tools.discovery import ArtifactEmitter, EndpointProber
    from apprabbit_tools.jira_integration import JiraClient

    # Probe the API and write the audit + generated client
    with httpx.Client(base_url="https://api.apprabbit.com") as client:
        record = EndpointProber(client).discover()
    ArtifactEmitter("generated").emit(record)

    # File a run report
    JiraClient().create_test_execution_issue(summary)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "resolution",
    "discovery",
    "jira_integration",
    "report_tools",
]
