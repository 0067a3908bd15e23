"""Tests for wrapper script generation."""

import shutil
import subprocess

import pytest

from xbisect.core.config import FailurePolicy
from xbisect.core.errors import ValidationError
from xbisect.tools.script import (
    INITIAL_HASH_LITERAL,
    failure_exit,
    render_script,
    write_script,
)

pytestmark = pytest.mark.skipif(
    shutil.which("sh") is None, reason="needs a POSIX shell"
)


@pytest.fixture
def step_script(tmp_path):
    """Script where 'build' passes and 'test' exits 3."""
    path = tmp_path / "steps.sh"
    path.write_text(
        "#!/bin/sh\n"
        "echo \"running $1\"\n"
        "case \"$1\" in\n"
        "  build) exit 0 ;;\n"
        "  test) exit 3 ;;\n"
        "  *) exit 0 ;;\n"
        "esac\n"
    )
    path.chmod(0o755)
    return path


def run_wrapper(path):
    return subprocess.run(
        [str(path)], capture_output=True, text=True, check=False
    )


def test_render_script_structure(tmp_path):
    text = render_script(["build", "test"], tmp_path / "s.sh")

    assert text.startswith("#!/bin/sh\n")
    assert f'echo "{INITIAL_HASH_LITERAL}"' in text
    assert "STEP_NAME=build" in text
    assert "STEP_NAME=test" in text
    assert text.index("STEP_NAME=build") < text.index("STEP_NAME=test")
    assert text.rstrip().endswith("exit 0")


@pytest.mark.parametrize("steps", [[], ["ok", "no spaces"], ["a;rm"]])
def test_invalid_steps_rejected(tmp_path, steps):
    with pytest.raises(ValidationError):
        render_script(steps, tmp_path / "s.sh")


def test_failure_exit():
    assert failure_exit(FailurePolicy.PASSTHROUGH) == "$RESULT"
    assert failure_exit(FailurePolicy.BAD) == "1"
    assert failure_exit(FailurePolicy.SKIP, 125) == "125"


def test_wrapper_all_pass(tmp_path, step_script):
    wrapper = write_script(tmp_path / "w.sh", ["build"], step_script)

    result = run_wrapper(wrapper)

    assert result.returncode == 0
    assert result.stdout.splitlines() == [
        INITIAL_HASH_LITERAL,
        "running build",
        "xbisect step=build PASS",
    ]


@pytest.mark.parametrize("policy, expected", [
    (FailurePolicy.PASSTHROUGH, 3),
    (FailurePolicy.BAD, 1),
    (FailurePolicy.SKIP, 125),
])
def test_wrapper_failure_policy(tmp_path, step_script, policy, expected):
    """The first failing step ends the wrapper with the policy's status."""
    wrapper = write_script(
        tmp_path / "w.sh", ["build", "test", "never"], step_script, policy
    )

    result = run_wrapper(wrapper)

    assert result.returncode == expected
    lines = result.stdout.splitlines()
    assert "xbisect step=build PASS" in lines
    assert lines[-1] == "xbisect step=test FAIL res=3"
    assert "running never" not in lines


def test_script_path_with_spaces(tmp_path):
    script_dir = tmp_path / "dir with spaces"
    script_dir.mkdir()
    script = script_dir / "steps.sh"
    script.write_text("#!/bin/sh\nexit 0\n")
    script.chmod(0o755)

    wrapper = write_script(tmp_path / "w.sh", ["build"], script)

    assert run_wrapper(wrapper).returncode == 0
