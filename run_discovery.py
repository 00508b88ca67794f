#!/usr/bin/env python3
# ================================================================================
# Discovery Runner Script
# ================================================================================
#
# Probes a live AppRabbit deployment for working UI selectors and responding
# API endpoints, then writes the audit JSON and the generated page objects /
# API client.
#
# Features:
#   - UI discovery (login page, then dashboard after logging in)
#   - API discovery (every catalogued path with GET and POST)
#   - Stub regeneration from an existing audit file, without a live target
#
# Usage:
#   python run_discovery.py --all
#   python run_discovery.py --ui --headed --base-url https://staging.apprabbit.com
#   python run_discovery.py --api --api-url http://localhost:8000
#   python run_discovery.py --regenerate generated/audit/login_page.json
#   python run_discovery.py --regenerate generated/discovered-selectors.json
#
# ================================================================================

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import httpx
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from apprabbit_tools.common import get_config, init_logger
from apprabbit_tools.discovery import (
    DASHBOARD_PAGE,
    LOGIN_PAGE,
    ApiDiscoveryRecord,
    ArtifactEmitter,
    DiscoveryRecord,
    EndpointProber,
    SelectorProber,
)
from apprabbit_tools.resolution import CandidateExhaustedError, EmissionError, Resolver
from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.pages.login_page import LoginPage


class DiscoveryRunner:
    """
    Orchestrates one discovery run.

    Each surface is probed sequentially; the UI run owns one browser page
    and the API run owns one HTTP session.
    """

    def __init__(
        self,
        output_dir: Path,
        base_url: str,
        api_url: str,
        headless: bool = True,
    ):
        self.emitter = ArtifactEmitter(output_dir)
        self.base_url = base_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.headless = headless
        self.per_candidate_timeout = float(get_config("discovery.per_candidate_timeout", 2.0))
        self.request_timeout = float(get_config("discovery.request_timeout", 5.0))

    async def discover_ui(self) -> List[DiscoveryRecord]:
        """Discover the login page, log in, then discover the dashboard."""
        logger.info(f"🚀 Starting selector discovery on {self.base_url}")

        async with BrowserManager(headless=self.headless) as manager:
            page = await manager.new_page()
            prober = SelectorProber(
                page,
                base_url=self.base_url,
                resolver=Resolver(per_candidate_timeout=self.per_candidate_timeout),
            )

            records = [await prober.discover(LOGIN_PAGE)]

            login_page = LoginPage(page, base_url=self.base_url)
            try:
                await login_page.login_with_valid_credentials()
                await page.wait_for_load_state("networkidle", timeout=15000)
            except (CandidateExhaustedError, PlaywrightError) as e:
                logger.warning(f"Login before dashboard discovery failed: {e}")

            records.append(await prober.discover(DASHBOARD_PAGE))

        return records

    def discover_api(self) -> ApiDiscoveryRecord:
        logger.info(f"🚀 Starting endpoint discovery on {self.api_url}")
        with httpx.Client(
            base_url=self.api_url,
            timeout=self.request_timeout,
            headers={"Content-Type": "application/json"},
        ) as client:
            return EndpointProber(client, timeout=self.request_timeout).discover()

    def run(self, ui: bool, api: bool) -> List:
        records: List = []
        if ui:
            ui_records = asyncio.run(self.discover_ui())
            self.emitter.emit_all(ui_records)
            self.emitter.write_summary(ui_records)
            records.extend(ui_records)
        if api:
            api_record = self.discover_api()
            self.emitter.emit(api_record)
            self.emitter.write_endpoint_summary(api_record)
            records.append(api_record)
        return records


def log_summary(records: List) -> bool:
    """Log found/missing per surface. Returns True when nothing is missing."""
    complete = True
    logger.info("=" * 60)
    for record in records:
        if isinstance(record, ApiDiscoveryRecord):
            paths = record.path_summary()
            logger.info(f"API {record.base_url}: {len(paths) - len(record.missing_paths)}/{len(paths)} paths responding")
            if record.missing_paths:
                logger.warning(f"   missing: {', '.join(record.missing_paths)}")
        else:
            missing = [e.logical_name for e in record.missing]
            logger.info(f"{record.page_name}: {len(record.found)}/{len(record.entries)} found")
            if missing:
                logger.warning(f"   missing: {', '.join(missing)}")
        complete = complete and not record.is_partial
    logger.info("=" * 60)
    return complete


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="AppRabbit selector and endpoint discovery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Discover everything with default configuration
  python run_discovery.py --all

  # UI only, visible browser
  python run_discovery.py --ui --headed

  # Rebuild a stub after editing generation rules
  python run_discovery.py --regenerate generated/audit/api_client.json
        """
    )

    surface = parser.add_mutually_exclusive_group()
    surface.add_argument("--ui", action="store_true", help="Discover UI selectors only")
    surface.add_argument("--api", action="store_true", help="Discover API endpoints only")
    surface.add_argument("--all", action="store_true", help="Discover both (default)")
    surface.add_argument(
        "--regenerate",
        metavar="AUDIT_JSON",
        help="Rebuild the stubs for an audit file (per-stub or per-run) without probing"
    )

    parser.add_argument(
        "--output-dir",
        default=get_config("discovery.output_dir", "generated"),
        help="Directory for audit files and generated stubs (default: generated)"
    )
    parser.add_argument("--base-url", default=get_config("ui.base_url", "https://app.apprabbit.com"))
    parser.add_argument("--api-url", default=get_config("api.base_url", "https://api.apprabbit.com"))
    parser.add_argument("--headed", action="store_true", help="Run browser in headed mode")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 2 when any logical name was not found"
    )
    parser.add_argument("--log-level", default=None, help="Override logging.level")

    args = parser.parse_args(argv)
    init_logger(level=args.log_level)

    runner = DiscoveryRunner(
        output_dir=Path(args.output_dir),
        base_url=args.base_url,
        api_url=args.api_url,
        headless=not args.headed,
    )

    try:
        if args.regenerate:
            runner.emitter.regenerate(args.regenerate)
            return 0

        ui = args.ui or not args.api
        api = args.api or not args.ui
        records = runner.run(ui=ui, api=api)
    except EmissionError as e:
        logger.error(f"❌ Discovery run aborted: {e}")
        return 1

    complete = log_summary(records)
    logger.info(f"✅ Discovery complete. Artifacts in {args.output_dir}")
    if args.strict and not complete:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
