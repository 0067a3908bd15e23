"""Command execution using invoke library with custom extensions."""

from pathlib import Path
from typing import BinaryIO

from invoke import Context, Result
from invoke.exceptions import UnexpectedExit

from xbisect.core.log import logger


class Runner(Context):
    """Wrapper around invoke.Context with a single execute() entry
    point for short, non-streaming commands (git setup, clone).
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        sink: BinaryIO | None = None,
        log_level: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a command and capture its output.

        Args:
            command: Command string to execute
            cwd: Working directory for command execution
            sink: Raw log sink that receives the command line and
                its combined stdout/stderr
            log_level: Log level for echoing output lines
                (info, debug, ...)
            check: If True, raise exception on non-zero exit
                code
            env: Environment variables to set (updates os.environ,
                does not replace it)

        Returns:
            invoke.Result with stdout, stderr, exited (return
                code)

        Raises:
            invoke.UnexpectedExit: If check=True and command
                returns non-zero
        """
        # Always warn so output reaches the sink before any raise
        kwargs = {
            "hide": True,  # Capture output, don't print to console
            "warn": True,
            "in_stream": False,
        }
        if env:
            kwargs["env"] = env

        logger.debug("Running command", command=command, cwd=str(cwd))
        if sink is not None:
            sink.write(f"Running command: {command}\n".encode())

        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **kwargs)
        else:
            result = self.run(command, **kwargs)

        if sink is not None:
            sink.write((result.stdout + result.stderr).encode(
                "utf-8", errors="replace"
            ))

        if log_level:
            for line in result.stdout.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())
            for line in result.stderr.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())

        if check and result.failed:
            raise UnexpectedExit(result)

        return result
