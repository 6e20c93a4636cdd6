"""Checks that the automation framework and the target site are available."""

import logging

import aiohttp

from qa_suite_runner.config import RunnerConfig
from qa_suite_runner.invoker import run_process

log = logging.getLogger(__name__)

VERSION_CHECK_TIMEOUT = 60


class PrerequisiteMissingError(Exception):
    """Raised when the framework or the network target is not available."""


async def check_prerequisites(config: RunnerConfig) -> None:
    """Verify everything a run needs before any category is invoked.

    Raises:
        PrerequisiteMissingError: If the framework tool cannot be run or the
            target site is unreachable

    """
    log.info("Checking prerequisites...")
    await check_framework(config)
    check_browsers(config)
    await check_network(config.base_url, config.network_timeout)


async def check_framework(config: RunnerConfig) -> None:
    """Run the framework's version command."""
    framework = config.framework
    command = framework.version_command
    try:
        outcome = await run_process(command, VERSION_CHECK_TIMEOUT)
    except (OSError, TimeoutError) as e:
        raise PrerequisiteMissingError(
            f"{framework.name} not found ({' '.join(command)}): {e}"
        ) from e

    if outcome.returncode != 0:
        raise PrerequisiteMissingError(
            f"{framework.name} not found: '{' '.join(command)}' "
            f"exited with code {outcome.returncode}"
        )

    log.info("%s is installed: %s", framework.name, outcome.stdout.strip())


def check_browsers(config: RunnerConfig) -> None:
    """Warn when the framework's browser bundle does not appear installed."""
    browsers_path = config.framework.browsers_path
    if browsers_path is None:
        return

    if browsers_path.exists():
        log.info("%s browsers are available", config.framework.name)
    else:
        log.warning(
            "%s browsers may not be installed (%s missing)",
            config.framework.name,
            browsers_path,
        )


async def check_network(url: str, timeout: float) -> None:
    """Confirm the target answers HTTP requests; any status code will do."""
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with (
            aiohttp.ClientSession(timeout=client_timeout) as session,
            session.head(url, allow_redirects=True) as response,
        ):
            status = response.status
    except (aiohttp.ClientError, TimeoutError) as e:
        raise PrerequisiteMissingError(
            f"Network connectivity to {url} failed: {str(e) or type(e).__name__}"
        ) from e

    log.info("Network connectivity to %s confirmed (HTTP %d)", url, status)
