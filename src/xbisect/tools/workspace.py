"""Workspace staging: an isolated copy of a project per bisect run."""

import random
import shutil
from dataclasses import dataclass
from pathlib import Path

from xbisect.core.errors import WorkspaceError
from xbisect.core.log import logger


@dataclass(frozen=True)
class Workspace:
    """A staged bisect workspace.

    Attributes:
        root: Uniquely-named cache directory owned by one run
        repo: The project copy inside root; git bisect runs here
    """

    root: Path
    repo: Path


class WorkspaceStager:
    """Allocates workspace directories under the cache root and
    copies projects into them.

    Workspaces are never reused or removed here; the clean command
    deletes the whole cache.
    """

    def __init__(
        self,
        cache_root: Path,
        repo_subdir: str = "_repo",
        rng: random.Random | None = None,
    ):
        """Initialize stager.

        Args:
            cache_root: Directory under which workspaces are created
            repo_subdir: Name of the project copy inside a workspace
            rng: Source of directory name suffixes
        """
        self.cache_root = cache_root
        self.repo_subdir = repo_subdir
        self.rng = rng or random.Random()

    def _candidate(self, run_id: str) -> Path:
        return self.cache_root / f"{run_id}_{self.rng.getrandbits(63)}"

    def allocate(self, run_id: str) -> Path:
        """Create and return a workspace directory that did not exist.

        Keeps drawing new random suffixes while the candidate exists
        or loses a creation race.

        Raises:
            WorkspaceError: If the directory cannot be created
        """
        while True:
            candidate = self._candidate(run_id)
            logger.debug("Considering cache dir: {path}", path=str(candidate))
            if candidate.exists():
                continue
            try:
                candidate.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                continue
            except OSError as e:
                raise WorkspaceError(
                    f"Failed to create cache dir {candidate}: {e}"
                ) from e
            return candidate

    def stage(self, run_id: str, source: Path) -> Workspace:
        """Allocate a workspace and copy the project's working tree.

        Args:
            run_id: Prefix for the directory name (the project name)
            source: The project's local working tree

        Returns:
            The staged Workspace

        Raises:
            WorkspaceError: If allocation or the copy fails
        """
        if not source.is_dir():
            raise WorkspaceError(f"Project directory not found: {source}")

        root = self.allocate(run_id)
        logger.info("Using cache directory for bisect: {path}", path=str(root))

        repo = root / self.repo_subdir
        try:
            shutil.copytree(source, repo, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise WorkspaceError(
                f"Failed to copy {source} to cache location {repo}: {e}"
            ) from e

        return Workspace(root=root, repo=repo)
