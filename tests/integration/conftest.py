"""Fixtures for integration tests."""

import sys
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from qa_suite_runner.config import FrameworkConfig

FAKE_FRAMEWORK = """\
import json
import os
import sys
import time

args = sys.argv[1:]
if args == ["--version"]:
    print("Version 0.0.0-fake")
    sys.exit(0)

tag = args[0]
if tag in os.environ.get("FAKE_SLOW_TAGS", "").split(","):
    pid_file = os.environ.get("FAKE_PID_FILE")
    if pid_file:
        with open(pid_file + ".tmp", "w") as f:
            f.write(str(os.getpid()))
        os.replace(pid_file + ".tmp", pid_file)
    time.sleep(30)

failed = tag in os.environ.get("FAKE_FAIL_TAGS", "").split(",")
print(json.dumps({
    "suites": [],
    "stats": {
        "duration": 12.5,
        "expected": 2,
        "unexpected": 1 if failed else 0,
        "flaky": 0,
        "skipped": 0,
    },
}))
if failed:
    print(f"{tag}: 1 test failed", file=sys.stderr)
    sys.exit(1)
"""


@pytest.fixture
def fake_framework(tmp_path: Path) -> FrameworkConfig:
    """Write a stand-in automation framework and return its configuration.

    Tags listed in FAKE_FAIL_TAGS exit 1 and tags in FAKE_SLOW_TAGS hang,
    writing their PID to FAKE_PID_FILE first when it is set.
    """
    script = tmp_path / "fake_framework.py"
    script.write_text(FAKE_FRAMEWORK)
    return FrameworkConfig(
        name="FakeFramework",
        command=[sys.executable, str(script)],
        tag_args=["{tag}"],
        extra_args=[],
        version_command=[sys.executable, str(script), "--version"],
        browsers_path=None,
    )


@pytest.fixture
async def target_url() -> AsyncGenerator[str]:
    """Serve a minimal site to check reachability against."""

    async def index(request: web.Request) -> web.Response:
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/", index)

    async with TestServer(app) as server:
        yield str(server.make_url("/"))
