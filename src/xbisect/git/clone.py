"""Clone a remote project into the local repos directory."""

import shlex
import shutil
from pathlib import Path

from xbisect.core.config import GitCommands
from xbisect.core.errors import CloneError
from xbisect.core.log import logger
from xbisect.core.runner import Runner


def clone_repository(
    url: str,
    dest: Path,
    commands: GitCommands | None = None,
    runner: Runner | None = None,
) -> Path:
    """Clone url into dest, replacing any stale directory there.

    Raises:
        CloneError: If git clone fails
    """
    commands = commands or GitCommands()
    runner = runner or Runner()

    if dest.exists():
        logger.warn("Removing stale clone directory {dest}", dest=str(dest))
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    command = commands.clone.format(
        url=shlex.quote(url), dest=shlex.quote(str(dest))
    )
    logger.info("Cloning {url}", url=url, dest=str(dest))
    result = runner.execute(command, log_level="debug", check=False)
    if result.failed:
        raise CloneError(
            f"git clone of {url} failed with exit code {result.exited}: "
            f"{result.stderr.strip()}"
        )
    return dest
