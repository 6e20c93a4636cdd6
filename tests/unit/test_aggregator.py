"""Tests for result aggregation and reporting."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from qa_suite_runner.aggregator import (
    ArtifactWriteError,
    ResultAggregator,
    format_report,
    log_run_summary,
    write_report,
)
from qa_suite_runner.models.result import ReporterStats
from qa_suite_runner.models.summary import RunSummary
from qa_suite_runner.testing.factories import CategoryResultFactory


@pytest.fixture
def summary() -> RunSummary:
    """Create a summary with one passing critical and one failing category."""
    summary = RunSummary(environment="staging")
    summary.append(
        CategoryResultFactory.build(
            name="smoke",
            title="Smoke Tests",
            tag="smoke",
            critical=True,
            duration=1.5,
            output="ok",
            stats=ReporterStats(expected=4, skipped=1),
        )
    )
    summary.append(
        CategoryResultFactory.build(
            name="e2e",
            title="E2E Tests",
            tag="e2e",
            status="failure",
            duration=3.25,
            message="Exited with code 1",
        )
    )
    return summary


class TestLogRunSummary:
    """Tests for log_run_summary."""

    def test_logs_each_category_with_symbol(
        self, summary: RunSummary, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Logs one line per category and the counts."""
        with caplog.at_level(logging.INFO):
            log_run_summary(logging.getLogger(), summary)

        assert "Test Execution Summary (staging):" in caplog.text
        assert "✓ Smoke Tests [critical]: success (1.50s)" in caplog.text
        assert "✗ E2E Tests: failure (3.25s)" in caplog.text
        assert "Message: Exited with code 1" in caplog.text
        assert "Categories executed: 2" in caplog.text
        assert "Failed: 1" in caplog.text
        assert "Critical failures: 0" in caplog.text

    def test_warns_on_non_critical_failure(
        self, summary: RunSummary, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Logs a warning, not an error, for non-critical failures."""
        with caplog.at_level(logging.INFO):
            log_run_summary(logging.getLogger(), summary)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("non-critical tests failed" in r.message for r in warnings)
        assert not any(r.levelno == logging.ERROR for r in caplog.records)

    def test_errors_on_critical_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        """Logs critical failures at error level."""
        summary = RunSummary(environment="production")
        summary.append(
            CategoryResultFactory.build(
                title="API Tests", critical=True, status="timeout", duration=300.0
            )
        )

        with caplog.at_level(logging.INFO):
            log_run_summary(logging.getLogger(), summary)

        assert "⏱ API Tests [critical]: timeout (300.00s)" in caplog.text
        errors = [r.message for r in caplog.records if r.levelno == logging.ERROR]
        assert "CRITICAL TEST FAILURES DETECTED!" in errors

    def test_reports_all_pass(self, caplog: pytest.LogCaptureFixture) -> None:
        """Logs the all-pass message when nothing failed."""
        summary = RunSummary(environment="production")
        summary.append(CategoryResultFactory.build())

        with caplog.at_level(logging.INFO):
            log_run_summary(logging.getLogger(), summary)

        assert "ALL TESTS PASSED! Ready for deployment." in caplog.text

    def test_mentions_aborted_run(self, caplog: pytest.LogCaptureFixture) -> None:
        """Warns when the run was interrupted."""
        summary = RunSummary(environment="production", aborted=True)

        with caplog.at_level(logging.INFO):
            log_run_summary(logging.getLogger(), summary)

        assert "Run was interrupted" in caplog.text


class TestFormatReport:
    """Tests for format_report."""

    def test_formats_counts_and_results(self, summary: RunSummary) -> None:
        """Formats counts, classification and per-category entries."""
        summary.finalize()

        report = format_report(summary)

        assert report["environment"] == "staging"
        assert report["classification"] == "non-critical-failure"
        assert report["aborted"] is False
        assert report["timestamp"] == summary.started_at.isoformat()
        assert report["summary"] == {
            "total": 2,
            "passed": 1,
            "failed": 1,
            "critical_failed": 0,
        }
        assert [r["name"] for r in report["results"]] == ["smoke", "e2e"]
        assert report["results"][0] == {
            "name": "smoke",
            "title": "Smoke Tests",
            "tag": "smoke",
            "critical": True,
            "success": True,
            "status": "success",
            "duration": 1.5,
            "message": None,
            "output": "ok",
            "tests": {"total": 5, "passed": 4, "failed": 0, "flaky": 0, "skipped": 1},
        }
        assert report["results"][1]["success"] is False
        assert report["results"][1]["tests"] is None

    def test_aggregates_test_stats(self, summary: RunSummary) -> None:
        """Sums reporter stats over categories that produced them."""
        report = format_report(summary)

        assert report["tests"] == {
            "total": 5,
            "passed": 4,
            "failed": 0,
            "flaky": 0,
            "skipped": 1,
        }

    def test_empty_run(self) -> None:
        """Formats a run without categories."""
        report = format_report(RunSummary(environment="production"))

        assert report["summary"]["total"] == 0
        assert report["classification"] == "all-pass"
        assert report["tests"] is None
        assert report["results"] == []


class TestWriteReport:
    """Tests for write_report."""

    def test_writes_json_creating_directories(
        self, summary: RunSummary, tmp_path: Path
    ) -> None:
        """Creates missing directories and writes the report."""
        path = tmp_path / "test-results" / "summary-report.json"

        write_report(summary, path)

        data = json.loads(path.read_text())
        assert data["summary"]["total"] == 2
        assert not path.with_name("summary-report.json.tmp").exists()

    def test_overwrites_previous_report(
        self, summary: RunSummary, tmp_path: Path
    ) -> None:
        """Replaces an existing report instead of keeping history."""
        path = tmp_path / "summary-report.json"
        path.write_text('{"old": true}')

        write_report(summary, path)

        assert "old" not in json.loads(path.read_text())

    def test_raises_artifact_write_error(
        self, summary: RunSummary, tmp_path: Path
    ) -> None:
        """Wraps filesystem errors in ArtifactWriteError."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")

        with pytest.raises(ArtifactWriteError, match="Failed to write report"):
            write_report(summary, blocker / "summary-report.json")


class TestResultAggregator:
    """Tests for ResultAggregator."""

    def test_records_in_arrival_order(self) -> None:
        """Appends recorded results to the summary in order."""
        aggregator = ResultAggregator(summary=RunSummary(environment="test"))

        for name in ("security", "smoke", "api"):
            aggregator.record(CategoryResultFactory.build(name=name))

        assert [r.name for r in aggregator.summary.results] == [
            "security",
            "smoke",
            "api",
        ]

    def test_finalize_writes_artifact(
        self, summary: RunSummary, tmp_path: Path
    ) -> None:
        """Writes the report when a path is configured."""
        path = tmp_path / "report.json"
        aggregator = ResultAggregator(summary=summary, report_path=path)

        finalized = aggregator.finalize()

        assert finalized is summary
        assert summary.finalized
        data = json.loads(path.read_text())
        assert [r["name"] for r in data["results"]] == ["smoke", "e2e"]
        assert data["classification"] == "non-critical-failure"

    def test_finalize_without_path_writes_nothing(self, summary: RunSummary) -> None:
        """Skips the artifact when no report path is configured."""
        aggregator = ResultAggregator(summary=summary)

        with patch("qa_suite_runner.aggregator.write_report") as write_mock:
            aggregator.finalize()

        write_mock.assert_not_called()

    def test_finalize_twice_is_unsupported(self, summary: RunSummary) -> None:
        """Raises when finalizing an already finalized run."""
        aggregator = ResultAggregator(summary=summary)
        aggregator.finalize()

        with pytest.raises(RuntimeError):
            aggregator.finalize()

    def test_record_after_finalize_is_rejected(self, summary: RunSummary) -> None:
        """Does not accept results after finalize."""
        aggregator = ResultAggregator(summary=summary)
        aggregator.finalize()

        with pytest.raises(RuntimeError):
            aggregator.record(CategoryResultFactory.build())
