"""Models for category execution results."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict

CategoryStatus = Literal["success", "failure", "timeout", "error"]


class ReporterStats(BaseModel):
    """Test-level counts reported by the framework's JSON reporter.

    Only the ``stats`` block of the report is modelled, unknown keys are
    ignored so newer reporter versions keep parsing.
    """

    model_config = ConfigDict(frozen=True)

    expected: int = 0
    unexpected: int = 0
    flaky: int = 0
    skipped: int = 0
    duration: float = 0.0

    @property
    def total(self) -> int:
        """Number of tests the framework ran or skipped."""
        return self.expected + self.unexpected + self.flaky + self.skipped


class ReporterOutput(BaseModel):
    """Top-level shape of a JSON reporter document."""

    stats: ReporterStats


@dataclass(frozen=True, kw_only=True)
class CategoryResult:
    """Outcome of invoking the framework for one category."""

    name: str
    title: str
    tag: str
    critical: bool
    status: CategoryStatus
    duration: float
    output: str = ""
    message: str | None = None
    stats: ReporterStats | None = None

    @property
    def success(self) -> bool:
        """Whether the category's process completed with a zero exit code."""
        return self.status == "success"
