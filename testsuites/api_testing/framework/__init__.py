"""
================================================================================
API Testing Framework
================================================================================

API automation framework components.

Modules:
    - http_client: HTTP client with retry, bearer auth and Allure logging
    - config_loader: YAML configuration management
    - api_client: AppRabbit domain client and endpoint resolution

Author: Automation Team
License: MIT
================================================================================
"""

from .api_client import ApiClient, ApiResponse
from .config_loader import ConfigLoader, ConfigurationError
from .http_client import HttpClient, HttpClientError, RateLimitExceeded

__all__ = [
    "ApiClient",
    "ApiResponse",
    "ConfigLoader",
    "ConfigurationError",
    "HttpClient",
    "HttpClientError",
    "RateLimitExceeded",
]
