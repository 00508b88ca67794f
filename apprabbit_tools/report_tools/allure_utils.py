"""
================================================================================
Allure Report Utilities
================================================================================

Attach discovery output to Allure and turn an allure-results directory into
a run summary (logged, and forwarded to the Jira execution report) and an
HTML report.

================================================================================
"""

import json
import subprocess
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger

from apprabbit_tools.jira_integration import TestRunSummary


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data") -> None:
    allure.attach(
        json.dumps(data, indent=2, default=str),
        name=name,
        attachment_type=allure.attachment_type.JSON,
    )


def attach_text(text: str, name: str = "Text") -> None:
    allure.attach(text, name=name, attachment_type=allure.attachment_type.TEXT)


def attach_discovery_artifacts(artifacts) -> None:
    """
    Attach the audit JSON and the generated stub of one emitted record.

    Args:
        artifacts: EmittedArtifacts returned by ArtifactEmitter.emit
    """
    allure.attach(
        artifacts.audit_text,
        name=f"🔍 Audit: {artifacts.audit_path.name}",
        attachment_type=allure.attachment_type.JSON,
    )
    attach_text(artifacts.stub_text, name=f"🧩 Stub: {artifacts.stub_path.name}")


# ================================================================================
# Result Summary
# ================================================================================

STATUSES = ("passed", "failed", "broken", "skipped")


@dataclass
class TestResultSummary:
    """Counts per Allure status for one results directory."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total * 100 if self.total else 0.0

    def to_run_summary(self) -> TestRunSummary:
        """Broken tests count as failures in the issue tracker."""
        return TestRunSummary(
            total=self.total,
            passed=self.passed,
            failed=self.failed + self.broken,
            duration_ms=self.duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            **{status: getattr(self, status) for status in STATUSES},
            "unknown": self.unknown,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


class AllureReportProcessor:
    """
    Summarize allure-results and build the HTML report with the allure CLI.

    Args:
        results_dir: Directory pytest wrote `*-result.json` files to
        report_dir: HTML output, defaults to a sibling `allure-report`
    """

    def __init__(self, results_dir: Path, report_dir: Optional[Path] = None):
        self.results_dir = Path(results_dir)
        self.report_dir = Path(report_dir or self.results_dir.parent / "allure-report")

    def parse_results(self) -> List[Dict[str, Any]]:
        """Load every result file; unreadable files are skipped with a warning."""
        results = []
        for path in sorted(self.results_dir.glob("*-result.json")):
            try:
                results.append(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable result {path.name}: {e}")
        return results

    def generate_summary(self) -> TestResultSummary:
        results = self.parse_results()
        counts = Counter(r.get("status", "unknown") for r in results)

        summary = TestResultSummary(total=len(results))
        for status in STATUSES:
            setattr(summary, status, counts.pop(status, 0))
        summary.unknown = sum(counts.values())
        summary.duration_ms = sum(r.get("stop", 0) - r.get("start", 0) for r in results)
        return summary

    def generate_report(self) -> bool:
        """Run `allure generate`; False when the CLI is missing or fails."""
        cmd = ["allure", "generate", str(self.results_dir), "-o", str(self.report_dir), "--clean"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.warning("Allure CLI not found. Install allure-commandline to generate reports.")
            return False

        if result.returncode != 0:
            logger.error(f"Report generation failed: {result.stderr}")
            return False

        logger.info(f"📊 Report generated at {self.report_dir}")
        return True

    def log_summary(self) -> TestResultSummary:
        summary = self.generate_summary()
        logger.info("=" * 60)
        logger.info("TEST EXECUTION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total Tests:    {summary.total}")
        logger.info(f"Passed:         {summary.passed} ✅")
        logger.info(f"Failed:         {summary.failed} ❌")
        logger.info(f"Broken:         {summary.broken} ⚠️")
        logger.info(f"Skipped:        {summary.skipped} ⏭️")
        logger.info(f"Pass Rate:      {summary.pass_rate:.2f}%")
        logger.info(f"Duration:       {summary.duration_ms / 1000:.2f}s")
        logger.info("=" * 60)
        return summary


__all__ = [
    "attach_json",
    "attach_text",
    "attach_discovery_artifacts",
    "TestResultSummary",
    "AllureReportProcessor",
]
