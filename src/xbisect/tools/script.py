"""Wrapper script run by git bisect run at every candidate revision."""

import shlex
from pathlib import Path

from xbisect.core.config import FailurePolicy
from xbisect.core.errors import ValidationError
from xbisect.core.log import logger
from xbisect.core.request import is_identifier

# First line of output of every wrapper invocation
INITIAL_HASH_LITERAL = "Running bisect on current hash"
MARKER_PREFIX = "xbisect step="

_HEADER = f"""#!/bin/sh
echo "{INITIAL_HASH_LITERAL}"
"""

_STEP = """
STEP_NAME={step}
{script} "${{STEP_NAME}}"
RESULT=$?
if [ $RESULT -eq 0 ]
then
    echo "{prefix}${{STEP_NAME}} PASS"
else
    echo "{prefix}${{STEP_NAME}} FAIL res=${{RESULT}}"
    exit {exit_status}
fi
"""


def failure_exit(policy: FailurePolicy, skip_exit_code: int = 125) -> str:
    """Shell expression for the wrapper's exit status after a failure."""
    if policy is FailurePolicy.BAD:
        return "1"
    if policy is FailurePolicy.SKIP:
        return str(skip_exit_code)
    return "$RESULT"


def render_script(
    steps: list[str] | tuple[str, ...],
    script: Path,
    policy: FailurePolicy = FailurePolicy.PASSTHROUGH,
    skip_exit_code: int = 125,
) -> str:
    """Render the wrapper script text.

    Each step runs `script <step>`; the first failing step prints its
    FAIL marker and ends the wrapper, so later steps never run for
    that revision.

    Raises:
        ValidationError: If there are no steps or a name is not an
            identifier
    """
    if not steps:
        raise ValidationError("No steps provided to execute.")
    for step in steps:
        if not is_identifier(step):
            raise ValidationError(
                f"Invalid step name {step!r}. Only alphanumeric and "
                f"underscore/dash allowed."
            )

    exit_status = failure_exit(policy, skip_exit_code)
    body = "".join(
        _STEP.format(
            step=step,
            script=shlex.quote(str(script)),
            prefix=MARKER_PREFIX,
            exit_status=exit_status,
        )
        for step in steps
    )
    return _HEADER + body + "\nexit 0\n"


def write_script(
    path: Path,
    steps: list[str] | tuple[str, ...],
    script: Path,
    policy: FailurePolicy = FailurePolicy.PASSTHROUGH,
    skip_exit_code: int = 125,
) -> Path:
    """Write the wrapper script to path and make it executable."""
    text = render_script(steps, script, policy, skip_exit_code)
    logger.debug("Wrapper script written", path=str(path), script=text)
    path.write_text(text)
    path.chmod(0o755)
    return path
