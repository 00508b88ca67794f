"""
================================================================================
Discovery
================================================================================

Selector and endpoint discovery against a live AppRabbit deployment.

Exports:
    - SelectorProber: finds working selectors for catalogued page elements
    - EndpointProber: probes catalogued API paths with GET/POST
    - ArtifactEmitter: writes audit JSON and generated page objects/clients
    - Catalogs: LOGIN_PAGE, DASHBOARD_PAGE, API_PATHS

Example:
    from apprabbit_tools.discovery import ArtifactEmitter, EndpointProber

    with httpx.Client(base_url="https://api.apprabbit.com") as client:
        record = EndpointProber(client).discover()
    ArtifactEmitter("generated").emit(record)

================================================================================
"""

from .api_prober import EndpointProber, StatusClassifier
from .catalogs import (
    API_METHODS,
    API_PATHS,
    DASHBOARD_PAGE,
    LOGIN_PAGE,
    PAGE_CATALOG,
    ElementSpec,
    PageSpec,
)
from .emitter import ArtifactEmitter, EmittedArtifacts, load_record, load_records, render_audit, render_stub
from .models import ApiDiscoveryRecord, DiscoveryEntry, DiscoveryRecord, EndpointEntry
from .ui_prober import SelectorProber

__all__ = [
    "EndpointProber",
    "StatusClassifier",
    "API_METHODS",
    "API_PATHS",
    "DASHBOARD_PAGE",
    "LOGIN_PAGE",
    "PAGE_CATALOG",
    "ElementSpec",
    "PageSpec",
    "ArtifactEmitter",
    "EmittedArtifacts",
    "load_record",
    "load_records",
    "render_audit",
    "render_stub",
    "ApiDiscoveryRecord",
    "DiscoveryEntry",
    "DiscoveryRecord",
    "EndpointEntry",
    "SelectorProber",
]
