"""Drive git bisect through one complete session.

A session runs reset, start, good/bad endpoint marking and then
git bisect run with the wrapper script, parsing the run's stdout as
it is produced. Whatever happens after start, the session is reset
before control returns to the caller.
"""

import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from xbisect.core.config import GitCommands
from xbisect.core.errors import (
    LaunchError,
    ProtocolError,
    SessionSetupError,
    WaitError,
)
from xbisect.core.log import logger
from xbisect.core.result import SessionOutcome
from xbisect.core.runner import Runner
from xbisect.tools.parser import StreamParser, consume


class SessionState(Enum):
    """Lifecycle of a BisectSession."""

    IDLE = "idle"
    RESET = "reset"
    STARTED = "started"
    ENDPOINTS_SET = "endpoints_set"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BisectSession:
    """One git bisect session inside a staged workspace.

    Attributes:
        state: Current SessionState
        history: Every state entered, in order, starting with IDLE
    """

    def __init__(
        self,
        workdir: Path,
        wrapper: Path,
        sink: BinaryIO,
        commands: GitCommands | None = None,
        runner: Runner | None = None,
    ):
        """Initialize session.

        Args:
            workdir: Repository copy git bisect runs in
            wrapper: Executable wrapper script for git bisect run
            sink: Raw log sink for git output and the child's stderr
            commands: git command templates
            runner: Runner for the setup commands
        """
        self.workdir = workdir
        self.wrapper = wrapper
        self.sink = sink
        self.commands = commands or GitCommands()
        self.runner = runner or Runner()
        self.state = SessionState.IDLE
        self.history = [SessionState.IDLE]

    def _enter(self, state: SessionState) -> None:
        logger.debug(
            "Bisect session state",
            previous=self.state.value,
            state=state.value,
        )
        self.state = state
        self.history.append(state)

    def _format(self, template: str, **values) -> str:
        return template.format(
            **{key: shlex.quote(str(value)) for key, value in values.items()}
        )

    def _git(self, template: str, **values):
        """Run a setup command, raising SessionSetupError on failure."""
        command = self._format(template, **values)
        result = self.runner.execute(
            command,
            cwd=self.workdir,
            sink=self.sink,
            log_level="debug",
            check=False,
        )
        if result.failed:
            raise SessionSetupError(
                f"'{command}' failed with exit code {result.exited}: "
                f"{result.stderr.strip()}"
            )
        return result

    def run(self, lo: str, hi: str) -> SessionOutcome:
        """Bisect between a good revision lo and a bad revision hi.

        Returns:
            The parsed SessionOutcome. A nonzero exit from git bisect
            run is reported in its returncode, not raised.

        Raises:
            SessionSetupError: If start, an endpoint or rev-parse fails
            LaunchError: If git bisect run cannot be spawned
            ProtocolError: If its output cannot be parsed
            WaitError: If it cannot be waited on
        """
        self._enter(SessionState.RESET)
        # No session may be active, so a failing reset is fine
        self.runner.execute(
            self.commands.bisect_reset,
            cwd=self.workdir,
            sink=self.sink,
            log_level="debug",
            check=False,
        )

        self._enter(SessionState.STARTED)
        try:
            self._git(self.commands.bisect_start)
            self._git(self.commands.bisect_good, revision=lo)
            self._git(self.commands.bisect_bad, revision=hi)
            self._enter(SessionState.ENDPOINTS_SET)

            initial = self._git(self.commands.rev_parse_head).stdout.strip()
            if not initial:
                raise SessionSetupError("Could not resolve the current revision")
            logger.info(
                "Bisecting {lo}..{hi} from {initial}",
                lo=lo, hi=hi, initial=initial,
            )

            self._enter(SessionState.RUNNING)
            outcome = self._run(initial)
            self._enter(SessionState.COMPLETED)
            return outcome
        except (SessionSetupError, LaunchError, ProtocolError, WaitError):
            self._enter(SessionState.FAILED)
            raise
        finally:
            self._teardown()

    def _run(self, initial: str) -> SessionOutcome:
        command = self._format(self.commands.bisect_run, script=self.wrapper)
        logger.info("Running {command}", command=command)
        self.sink.write(f"Running command: {command}\n".encode())

        try:
            process = subprocess.Popen(
                shlex.split(command),
                cwd=self.workdir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=self.sink,
            )
        except OSError as e:
            raise LaunchError(f"Failed to launch '{command}': {e}") from e
        logger.debug("Started process PID {pid}", pid=process.pid)

        parser = StreamParser(initial)
        try:
            with process.stdout:
                consume(process.stdout, parser, self.sink)
        finally:
            try:
                returncode = process.wait()
            except OSError as e:
                raise WaitError(f"Failed to wait for '{command}': {e}") from e

        logger.debug("git bisect run exited", returncode=returncode)
        if returncode != 0:
            logger.warn(
                "git bisect run exited with {returncode}",
                returncode=returncode,
            )

        return SessionOutcome(
            initial_revision=initial,
            results=parser.results,
            returncode=returncode,
            first_bad_revision=parser.first_bad_revision,
        )

    def _teardown(self) -> None:
        result = self.runner.execute(
            self.commands.bisect_reset,
            cwd=self.workdir,
            sink=self.sink,
            log_level="debug",
            check=False,
        )
        if result.failed:
            logger.warn(
                "git bisect reset failed with {exited}",
                exited=result.exited,
            )
        self._enter(SessionState.IDLE)
