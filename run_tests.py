#!/usr/bin/env python3
# ================================================================================
# Test Runner Script
# ================================================================================
#
# Runs the AppRabbit suites through pytest, then summarizes allure-results and
# optionally files a Jira test execution issue.
#
# Suites:
#   unit  offline tests (resolver, discovery, emitter, clients against mocks)
#   api   live API tests
#   ui    live Playwright tests
#   all   everything under testsuites/
#
# Usage:
#   python run_tests.py --suite unit
#   python run_tests.py --suite api --tags P0 smoke
#   python run_tests.py --suite ui --browser firefox --no-headless
#   python run_tests.py --suite all --parallel 4 --jira-report
#
# ================================================================================

import argparse
import os
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from apprabbit_tools.common import get_flag, init_logger
from apprabbit_tools.jira_integration import JiraClient, JiraClientError, TestRunSummary
from apprabbit_tools.report_tools import AllureReportProcessor


ROOT_DIR = Path(__file__).parent

SUITE_PATHS: Dict[str, List[str]] = {
    "unit": ["testsuites/unit"],
    "api": ["testsuites/api_testing/tests"],
    "ui": ["testsuites/ui_testing/tests"],
    "all": ["testsuites/"],
}


class TestRunner:
    """
    One pytest invocation plus the reporting around it.

    Browser choice reaches the UI fixtures through UI_BROWSER / UI_HEADLESS
    in the child environment.
    """
    __test__ = False

    def __init__(
        self,
        suite: str = "all",
        tags: Optional[List[str]] = None,
        parallel: int = 1,
        browser: str = "chromium",
        headless: bool = True,
        allure_report: bool = True,
        jira_report: bool = False,
        verbose: bool = False,
    ):
        self.suite = suite
        self.tags = tags or []
        self.parallel = parallel
        self.browser = browser
        self.headless = headless
        self.allure_report = allure_report
        self.jira_report = jira_report
        self.verbose = verbose

        reports_dir = ROOT_DIR / "reports"
        self.allure_results = reports_dir / "allure-results"
        self.allure_report_dir = reports_dir / "allure-report"

    def build_command(self) -> List[str]:
        cmd = [sys.executable, "-m", "pytest", *SUITE_PATHS[self.suite]]
        if self.tags:
            cmd += ["-m", " or ".join(self.tags)]
        if self.parallel > 1:
            # pytest-xdist; each worker launches its own browser / HTTP session
            cmd += ["-n", str(self.parallel)]
        if self.allure_report:
            cmd += ["--alluredir", str(self.allure_results), "--clean-alluredir"]
        cmd.append("-v" if self.verbose else "-q")
        return cmd

    def build_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env["UI_BROWSER"] = self.browser
        env["UI_HEADLESS"] = "true" if self.headless else "false"
        return env

    def run(self) -> int:
        """Run pytest and report. Returns pytest's exit code."""
        logger.info("=" * 60)
        logger.info(f"🚀 Suite: {self.suite} | Tags: {self.tags or 'all'} | Workers: {self.parallel}")
        if self.suite in ("ui", "all"):
            logger.info(f"🌐 Browser: {self.browser} (headless={self.headless})")
        logger.info("=" * 60)

        self.allure_results.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command()
        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            exit_code = subprocess.run(cmd, cwd=str(ROOT_DIR), env=self.build_env()).returncode
        except OSError as e:
            logger.error(f"Could not start pytest: {e}")
            exit_code = 1

        if self.allure_report:
            processor = AllureReportProcessor(self.allure_results, self.allure_report_dir)
            processor.generate_report()
            summary = processor.log_summary()
            if self.jira_report:
                self.file_execution_report(summary.to_run_summary())

        if exit_code == 0:
            logger.info("✅ TEST EXECUTION COMPLETED SUCCESSFULLY")
        else:
            logger.error(f"❌ TEST EXECUTION FAILED (exit code: {exit_code})")
        if self.allure_report:
            logger.info(f"📊 Report available at: {self.allure_report_dir}")
        return exit_code

    @staticmethod
    def file_execution_report(run_summary: TestRunSummary) -> Optional[str]:
        if not get_flag("jira.enabled", False):
            logger.info("Jira disabled (jira.enabled=false); skipping execution report")
            return None
        try:
            return JiraClient().create_test_execution_issue(run_summary)
        except JiraClientError as e:
            logger.error(f"Failed to file Jira execution report: {e}")
            return None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="AppRabbit Automation Test Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py --suite unit
  python run_tests.py --suite all --tags P0 smoke --parallel 4
  python run_tests.py --suite ui --no-headless --browser firefox
        """,
    )
    parser.add_argument("--suite", choices=sorted(SUITE_PATHS), default="all",
                        help="Test suite to run (default: all)")
    parser.add_argument("--tags", nargs="+", default=[],
                        help="Pytest markers to select (joined with 'or')")
    parser.add_argument("--parallel", "-n", type=int, default=1,
                        help="Number of pytest-xdist workers (default: 1)")
    parser.add_argument("--browser", choices=["chromium", "firefox", "webkit"], default="chromium")
    parser.add_argument("--no-headless", action="store_true", help="Show the browser window")
    parser.add_argument("--no-allure", action="store_true", help="Skip Allure results and report")
    parser.add_argument("--jira-report", action="store_true",
                        help="File a Jira test execution issue (requires jira.enabled)")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    init_logger()
    return TestRunner(
        suite=args.suite,
        tags=args.tags,
        parallel=args.parallel,
        browser=args.browser,
        headless=not args.no_headless,
        allure_report=not args.no_allure,
        jira_report=args.jira_report,
        verbose=args.verbose,
    ).run()


if __name__ == "__main__":
    sys.exit(main())
