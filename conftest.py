"""
Repository-level pytest configuration.

  - Provide safe defaults for local runs (no secrets embedded)
  - Keep the live target and credentials overridable from the shell or CI

Values below are placeholders. Real credentials belong in CI secrets.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from apprabbit_tools.common import GlobalConfig


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Fill in placeholder target URLs and credentials unless the shell or CI
    already set them. Jira filing stays off unless JIRA_ENABLED is exported.
    """
    defaults = {
        "APPRABBIT_BASE_URL": "https://app.apprabbit.com",
        "APPRABBIT_TEST_EMAIL": "test@example.com",
        "APPRABBIT_TEST_PASSWORD": "password123",
        "APPRABBIT_API_URL": "https://api.apprabbit.com",
        "JIRA_ENABLED": "false",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)

    # Settings read during collection must not hide the defaults above
    GlobalConfig.reset()
    yield
