"""Aggregation of category results into a persisted run report."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from qa_suite_runner.models.result import CategoryResult, ReporterStats
from qa_suite_runner.models.summary import RunSummary

log = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    "success": "✓",
    "failure": "✗",
    "error": "!",
    "timeout": "⏱",
}

BANNER = "=" * 60


class ArtifactWriteError(Exception):
    """Raised when the summary report cannot be written."""


@dataclass(frozen=True, kw_only=True)
class ResultAggregator:
    """Collects results into a run summary and finalizes it once."""

    summary: RunSummary
    report_path: Path | None = None

    def record(self, result: CategoryResult) -> None:
        """Append a category result in arrival order."""
        self.summary.append(result)

    def finalize(self) -> RunSummary:
        """Close the run, log the console report and persist the artifact.

        Returns:
            The finalized summary

        Raises:
            RuntimeError: If the summary was already finalized
            ArtifactWriteError: If the report file cannot be written

        """
        self.summary.finalize()
        log_run_summary(log, self.summary)

        if self.report_path is not None:
            write_report(self.summary, self.report_path)
            log.info("Detailed report saved to: %s", self.report_path)

        return self.summary


def log_run_summary(logger: logging.Logger, summary: RunSummary) -> None:
    """Log a formatted summary of the run with its classification."""
    counts = summary.counts

    logger.info(BANNER)
    logger.info("Test Execution Summary (%s):", summary.environment)
    logger.info(BANNER)

    for result in summary.results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        logger.info(
            "%s %s%s: %s (%.2fs)",
            symbol,
            result.title,
            " [critical]" if result.critical else "",
            result.status,
            result.duration,
        )
        if result.message:
            logger.info("  Message: %s", result.message)

    if summary.duration is not None:
        logger.info("Total execution time: %.2fs", summary.duration)
    logger.info("Categories executed: %d", counts.total)
    logger.info("Passed: %d", counts.passed)
    logger.info("Failed: %d", counts.failed)
    logger.info("Critical failures: %d", counts.critical_failed)
    if summary.aborted:
        logger.warning("Run was interrupted, remaining categories were skipped")

    classification = summary.classification
    if classification == "critical-failure":
        logger.error("CRITICAL TEST FAILURES DETECTED!")
        logger.error("Review and fix critical issues before deployment.")
    elif classification == "non-critical-failure":
        logger.warning("Some non-critical tests failed.")
        logger.warning("Consider reviewing these issues for optimal quality.")
    else:
        logger.info("ALL TESTS PASSED! Ready for deployment.")

    logger.info(BANNER)


def format_stats(stats: ReporterStats | None) -> dict[str, Any] | None:
    """Format reporter stats for JSON output."""
    if stats is None:
        return None
    return {
        "total": stats.total,
        "passed": stats.expected,
        "failed": stats.unexpected,
        "flaky": stats.flaky,
        "skipped": stats.skipped,
    }


def format_report(summary: RunSummary) -> dict[str, Any]:
    """Format a run summary for the JSON artifact."""
    counts = summary.counts
    return {
        "timestamp": summary.started_at.isoformat(),
        "duration": round(summary.duration or 0.0, 2),
        "environment": summary.environment,
        "classification": summary.classification,
        "aborted": summary.aborted,
        "summary": {
            "total": counts.total,
            "passed": counts.passed,
            "failed": counts.failed,
            "critical_failed": counts.critical_failed,
        },
        "tests": format_stats(summary.test_stats),
        "results": [
            {
                "name": result.name,
                "title": result.title,
                "tag": result.tag,
                "critical": result.critical,
                "success": result.success,
                "status": result.status,
                "duration": round(result.duration, 2),
                "message": result.message,
                "output": result.output,
                "tests": format_stats(result.stats),
            }
            for result in summary.results
        ],
    }


def write_report(summary: RunSummary, path: Path) -> None:
    """Write the JSON artifact, replacing any report from a previous run.

    The document is written to a sibling temporary file first so an
    interrupted write never leaves a truncated report behind.

    Raises:
        ArtifactWriteError: If the directory or file cannot be written

    """
    tmp_path = path.with_name(f"{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(format_report(summary), indent=2) + "\n")
        os.replace(tmp_path, path)
    except OSError as e:
        raise ArtifactWriteError(f"Failed to write report to {path}: {e}") from e
