"""CLI entry point for the QA suite runner."""

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from qa_suite_runner.aggregator import ArtifactWriteError, ResultAggregator
from qa_suite_runner.categories import (
    CATEGORIES,
    CategoryNotFoundError,
    get_category,
    quick_categories,
)
from qa_suite_runner.config import RunnerConfig
from qa_suite_runner.invoker import SuiteInvoker
from qa_suite_runner.models.category import Category
from qa_suite_runner.models.summary import RunSummary, exit_code_for
from qa_suite_runner.prerequisites import PrerequisiteMissingError, check_prerequisites

INTERRUPTED_EXIT_CODE = 130

log = logging.getLogger("qa_suite_runner")


def build_invoker(config: RunnerConfig) -> SuiteInvoker:
    """Create a suite invoker from the runner configuration."""
    return SuiteInvoker(
        framework=config.framework,
        timeout=config.category_timeout,
        delay=config.category_delay,
    )


def install_termination_handler() -> None:
    """Cancel the current task when the process receives SIGTERM."""
    task = asyncio.current_task()
    if task is None:  # pragma: no cover
        return
    # add_signal_handler is not available on Windows event loops
    with contextlib.suppress(NotImplementedError, RuntimeError):
        asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, task.cancel)


async def check_prereq(config: RunnerConfig) -> int:
    """Run the prerequisite checks only and return exit code."""
    install_termination_handler()
    try:
        await check_prerequisites(config)
    except PrerequisiteMissingError as e:
        log.error("Prerequisite check failed: %s", e)
        return 1

    log.info("All prerequisites satisfied")
    return 0


async def run_suite(config: RunnerConfig, category: Category) -> int:
    """Run a single category without producing an aggregate report."""
    install_termination_handler()
    result = await build_invoker(config).run_category(category)

    summary = RunSummary(environment=config.environment)
    summary.append(result)
    return exit_code_for(summary, fail_on_non_critical=config.fail_on_non_critical)


async def run(
    config: RunnerConfig,
    categories: Sequence[Category],
    *,
    check_prerequisites_first: bool = True,
    write_artifact: bool = True,
) -> int:
    """Run categories sequentially, report on them, and return exit code."""
    install_termination_handler()

    if check_prerequisites_first and await check_prereq(config) != 0:
        return 1

    summary = RunSummary(environment=config.environment)
    aggregator = ResultAggregator(
        summary=summary,
        report_path=config.report_path if write_artifact else None,
    )

    log.info(
        "Running %d test categories against %s (%s)",
        len(categories),
        config.base_url,
        config.environment,
    )

    try:
        await build_invoker(config).run_categories(categories, aggregator)
    except asyncio.CancelledError:
        log.warning("Termination requested, skipping remaining categories")
        summary.aborted = True
        try:
            aggregator.finalize()
        except ArtifactWriteError as e:
            log.error("%s", e)
        raise

    try:
        aggregator.finalize()
    except ArtifactWriteError as e:
        log.error("%s", e)
        return 1

    return exit_code_for(summary, fail_on_non_critical=config.fail_on_non_critical)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    suites = "\n".join(
        f"  {category.name:<16}{category.description}"
        + (" (critical)" if category.critical else "")
        for category in CATEGORIES
    )
    parser = argparse.ArgumentParser(
        prog="qa-suite-runner",
        description="Run the browser-automation QA suite by category",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            f"available test suites:\n{suites}\n\n"
            "examples:\n"
            "  qa-suite-runner                  # run all test suites\n"
            "  qa-suite-runner --suite smoke    # run only smoke tests\n"
            "  qa-suite-runner --quick          # run critical tests only\n"
            "  qa-suite-runner --check-prereq   # check prerequisites\n"
        ),
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--suite",
        metavar="NAME",
        help="Run a single test suite without an aggregate report",
    )
    mode.add_argument(
        "--quick",
        action="store_true",
        help="Run only the smoke and API test suites",
    )
    mode.add_argument(
        "--check-prereq",
        action="store_true",
        help="Check prerequisites only",
    )
    parser.add_argument(
        "--config",
        default="{}",
        help="JSON configuration overriding runner defaults",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when non-critical suites fail",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = RunnerConfig.model_validate_json(args.config)
    except ValidationError as e:
        parser.error(f"invalid --config: {e}")
    if args.strict:
        config = config.model_copy(update={"fail_on_non_critical": True})

    if args.check_prereq:
        coro = check_prereq(config)
    elif args.suite:
        try:
            category = get_category(args.suite)
        except CategoryNotFoundError as e:
            parser.error(str(e))
        coro = run_suite(config, category)
    elif args.quick:
        log.info("Running quick test suite (smoke + API tests)")
        coro = run(
            config,
            quick_categories(),
            check_prerequisites_first=False,
            write_artifact=False,
        )
    else:
        coro = run(config, CATEGORIES)

    try:
        exit_code = asyncio.run(coro)
    except (KeyboardInterrupt, asyncio.CancelledError):
        log.error("Test run interrupted")
        exit_code = INTERRUPTED_EXIT_CODE
    except Exception:
        log.exception("Test runner failed")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
