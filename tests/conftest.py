"""Pytest configuration and fixtures for xbisect tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from xbisect.core.config import GitCommands
from xbisect.core.log import ConsoleSink, setup_logger
from xbisect.tools.script import write_script


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    Nothing is sent to logfire.dev; debug output shows up in pytest's
    captured output of failing tests.
    """
    test_log_root = Path(tempfile.gettempdir()) / "xbisect-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug", colors="never"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["xbisect"]
    yield
    sys.argv = original


@pytest.fixture
def xbisect_home(tmp_path, monkeypatch):
    """Point the app data directory at a temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("XBISECT_HOME", str(home))
    return home


@pytest.fixture
def make_state(mock_argv, xbisect_home):
    """Build a State with full configuration loading.

    sys.argv is replaced so that pytest's arguments are not parsed
    as CLI settings. Keyword arguments become init settings.
    """
    from xbisect.core.config import State

    def _make(**kwargs):
        return State(**kwargs)

    return _make

# git bisect run as seen from the parser: test HEAD, announce one more
# revision, test it, name the culprit and exit nonzero
FAKE_BISECT_RUN = """#!/bin/sh
"$1"
echo "Bisecting: 0 revisions left to test after this (roughly 0 steps)"
echo "[ccc333] Break the tests"
"$1"
echo "ccc333 is the first bad commit"
echo "bisect run failed" >&2
exit 1
"""


@pytest.fixture
def step_script(tmp_path):
    """'build' passes, 'test' fails."""
    path = tmp_path / "steps.sh"
    path.write_text(
        "#!/bin/sh\n"
        "echo \"step output for $1\"\n"
        "[ \"$1\" = build ]\n"
    )
    path.chmod(0o755)
    return path


@pytest.fixture
def wrapper(tmp_path, step_script):
    return write_script(tmp_path / "bisect_wrapper.sh", ["build", "test"], step_script)


@pytest.fixture
def calls(tmp_path):
    """File every fake setup command appends its name to."""
    return tmp_path / "calls.txt"


@pytest.fixture
def fake_run(tmp_path):
    """Write a fake 'git bisect run' and return its path."""
    def _write(text=FAKE_BISECT_RUN):
        path = tmp_path / "fake_bisect_run.sh"
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def fake_git(calls, fake_run):
    """GitCommands that record setup calls and replay a fake run."""
    def _make(run_text=FAKE_BISECT_RUN, **overrides):
        fields = dict(
            bisect_reset=f"echo reset >> {calls}",
            bisect_start=f"echo start >> {calls}",
            bisect_good=f"echo good {{revision}} >> {calls}",
            bisect_bad=f"echo bad {{revision}} >> {calls}",
            bisect_run=f"sh {fake_run(run_text)} {{script}}",
            rev_parse_head="echo aaa111",
        )
        fields.update(overrides)
        return GitCommands(**fields)
    return _make


@pytest.fixture
def sink(tmp_path):
    with open(tmp_path / "bisect.log", "ab", buffering=0) as f:
        yield f
