"""Configuration for the suite runner and the automation framework."""

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, Field, PositiveFloat, field_validator

ENVIRONMENT_URLS: Mapping[str, str] = {
    "production": "https://li.fi",
    "staging": "https://staging.li.fi",
    "development": "https://dev.li.fi",
    "local": "http://localhost:3000",
}

DEFAULT_ENVIRONMENT = "production"


def environment_from_env() -> str:
    """Read the environment label from TEST_ENV or NODE_ENV."""
    return (
        os.environ.get("TEST_ENV") or os.environ.get("NODE_ENV") or DEFAULT_ENVIRONMENT
    )


class FrameworkConfig(BaseModel):
    """How to invoke the external browser-automation framework.

    ``tag_args`` entries may reference ``{tag}``, which is replaced with the
    category tag when building a command.
    """

    name: str = Field(default="Playwright", description="Name used in log lines")
    command: Sequence[str] = Field(
        default=("npx", "playwright", "test"),
        min_length=1,
        description="Program and arguments that run the test suite",
    )
    tag_args: Sequence[str] = Field(
        default=("--grep", "@{tag}"),
        description="Arguments selecting a category, '{tag}' is substituted",
    )
    extra_args: Sequence[str] = Field(
        default=("--reporter=json",),
        description="Arguments appended after the tag filter",
    )
    version_command: Sequence[str] = Field(
        default=("npx", "playwright", "--version"),
        min_length=1,
        description="Command proving the framework is installed",
    )
    browsers_path: Path | None = Field(
        default=Path("node_modules/@playwright/test"),
        description="Path whose absence suggests browsers are not installed",
    )

    @field_validator("tag_args")
    @classmethod
    def check_tag_placeholders(cls, tag_args: Sequence[str]) -> Sequence[str]:
        """Reject tag arguments referencing anything other than ``{tag}``."""
        for arg in tag_args:
            try:
                arg.format(tag="tag")
            except (KeyError, IndexError, AttributeError) as e:
                raise ValueError(
                    f"tag argument {arg!r} may only reference '{{tag}}'"
                ) from e
        return tag_args


class RunnerConfig(BaseModel):
    """Configuration for a suite run."""

    framework: FrameworkConfig = Field(default_factory=FrameworkConfig)
    environment: str = Field(default_factory=environment_from_env)
    target_url: str | None = Field(
        default=None,
        description="Site checked for reachability (defaults per environment)",
    )
    category_timeout: PositiveFloat = 300
    category_delay: float = Field(default=2, ge=0)
    network_timeout: PositiveFloat = 5
    report_path: Path = Path("test-results/summary-report.json")
    fail_on_non_critical: bool = False

    @property
    def base_url(self) -> str:
        """Target URL, falling back to the environment's default site."""
        if self.target_url:
            return self.target_url
        return ENVIRONMENT_URLS.get(
            self.environment, ENVIRONMENT_URLS[DEFAULT_ENVIRONMENT]
        )
