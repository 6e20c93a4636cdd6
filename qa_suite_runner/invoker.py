"""Sequential invocation of the automation framework, one category at a time."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from qa_suite_runner.aggregator import ResultAggregator
from qa_suite_runner.config import FrameworkConfig
from qa_suite_runner.models.category import Category
from qa_suite_runner.models.result import (
    CategoryResult,
    CategoryStatus,
    ReporterOutput,
    ReporterStats,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ProcessOutcome:
    """Exit status and captured streams of a finished child process."""

    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True, kw_only=True)
class SuiteInvoker:
    """Runs framework processes for categories, recording every outcome."""

    framework: FrameworkConfig = field(default_factory=FrameworkConfig)
    timeout: float = 300
    delay: float = 2

    def build_command(self, category: Category) -> Sequence[str]:
        """Build the framework command line for a category's tag filter."""
        tag_args = [arg.format(tag=category.tag) for arg in self.framework.tag_args]
        return [*self.framework.command, *tag_args, *self.framework.extra_args]

    async def run_category(self, category: Category) -> CategoryResult:
        """Run one category and convert any invocation failure into a result.

        Args:
            category: Category to run

        Returns:
            Result for the category; never raises for failed, timed out or
            unlaunchable processes

        """
        command = self.build_command(category)
        log.info("Starting %s: %s", category.title, " ".join(command))
        started = time.monotonic()

        status: CategoryStatus
        message: str | None = None
        stdout = ""
        try:
            outcome = await run_process(command, self.timeout)
        except TimeoutError:
            status = "timeout"
            message = f"Timed out after {self.timeout:g} seconds"
        except OSError as e:
            status = "error"
            message = f"Could not launch {self.framework.name}: {e}"
        else:
            stdout = outcome.stdout
            if outcome.returncode == 0:
                status = "success"
            else:
                status = "failure"
                message = failure_message(outcome)

        duration = time.monotonic() - started
        if status == "success":
            log.info("%s completed successfully (%.2fs)", category.title, duration)
        else:
            log.error("%s %s: %s", category.title, status, message)

        return CategoryResult(
            name=category.name,
            title=category.title,
            tag=category.tag,
            critical=category.critical,
            status=status,
            duration=duration,
            output=stdout,
            message=message,
            stats=parse_reporter_stats(stdout),
        )

    async def run_categories(
        self,
        categories: Sequence[Category],
        aggregator: ResultAggregator,
    ) -> None:
        """Run categories in order, recording each result before the next starts.

        A fixed delay separates consecutive categories so the previous
        browser session has shut down before the next one starts.
        """
        for index, category in enumerate(categories):
            if index and self.delay:
                await asyncio.sleep(self.delay)
            aggregator.record(await self.run_category(category))


async def run_process(command: Sequence[str], timeout: float) -> ProcessOutcome:
    """Run a command to completion, killing it on timeout or cancellation.

    Raises:
        TimeoutError: If the process does not exit within ``timeout`` seconds
        OSError: If the executable cannot be launched

    """
    process = await asyncio.create_subprocess_exec(
        *command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except BaseException:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return ProcessOutcome(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


def failure_message(outcome: ProcessOutcome) -> str:
    """Describe a non-zero exit using the last line of stderr when present."""
    message = f"Exited with code {outcome.returncode}"
    lines = outcome.stderr.strip().splitlines()
    if lines:
        message = f"{message}: {lines[-1].strip()}"
    return message


def parse_reporter_stats(output: str) -> ReporterStats | None:
    """Extract test counts from JSON reporter output, if that is what it is."""
    if not output.strip():
        return None
    try:
        return ReporterOutput.model_validate_json(output).stats
    except ValidationError:
        log.debug("Output is not a JSON report, skipping test stats")
        return None
