"""Run-level summary built up while categories execute."""

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from qa_suite_runner.models.result import CategoryResult, ReporterStats

Classification = Literal["all-pass", "non-critical-failure", "critical-failure"]


@dataclass(frozen=True, kw_only=True)
class RunCounts:
    """Category counts derived from a run's results."""

    total: int
    passed: int
    failed: int
    critical_failed: int


@dataclass(kw_only=True)
class RunSummary:
    """Aggregate record of one invocation of the runner.

    Results are appended in invocation order while the run is in progress.
    Once finalized the summary no longer accepts results.
    """

    environment: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    results: list[CategoryResult] = field(default_factory=list)
    duration: float | None = None
    aborted: bool = False
    finalized: bool = False
    _started_monotonic: float = field(
        default_factory=time.monotonic, repr=False, compare=False
    )

    def append(self, result: CategoryResult) -> None:
        """Record a category result at the end of the run list."""
        if self.finalized:
            raise RuntimeError("Cannot record results into a finalized summary")
        self.results.append(result)

    def finalize(self) -> None:
        """Freeze the summary and capture the run duration."""
        if self.finalized:
            raise RuntimeError("Run summary has already been finalized")
        self.duration = time.monotonic() - self._started_monotonic
        self.finalized = True

    @property
    def counts(self) -> RunCounts:
        """Category counts for the results recorded so far."""
        failed = [r for r in self.results if not r.success]
        return RunCounts(
            total=len(self.results),
            passed=len(self.results) - len(failed),
            failed=len(failed),
            critical_failed=sum(1 for r in failed if r.critical),
        )

    @property
    def classification(self) -> Classification:
        """Classify the run by the most severe failure it contains."""
        counts = self.counts
        if counts.critical_failed:
            return "critical-failure"
        if counts.failed:
            return "non-critical-failure"
        return "all-pass"

    @property
    def test_stats(self) -> ReporterStats | None:
        """Reporter stats summed over every category that produced them."""
        return sum_stats([r.stats for r in self.results if r.stats is not None])


def sum_stats(stats: Sequence[ReporterStats]) -> ReporterStats | None:
    """Add reporter stats together, returning None when there are none."""
    if not stats:
        return None
    return ReporterStats(
        expected=sum(s.expected for s in stats),
        unexpected=sum(s.unexpected for s in stats),
        flaky=sum(s.flaky for s in stats),
        skipped=sum(s.skipped for s in stats),
        duration=sum(s.duration for s in stats),
    )


def exit_code_for(summary: RunSummary, *, fail_on_non_critical: bool = False) -> int:
    """Map a run's classification to a process exit code.

    Non-critical failures exit 0 unless ``fail_on_non_critical`` is set.
    """
    classification = summary.classification
    if classification == "critical-failure":
        return 1
    if classification == "non-critical-failure" and fail_on_non_critical:
        return 1
    return 0
