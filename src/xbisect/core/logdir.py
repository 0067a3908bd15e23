"""Per-run log directory holding the raw bisect output."""

from datetime import datetime
from pathlib import Path
from typing import BinaryIO


class RunLogDir:
    """Manages the log directory of one bisection run.

    The directory holds bisect.log, the raw byte sink that receives
    git command output, the child's stderr and the full stdout of
    git bisect run.
    """

    def __init__(
        self, base_dir: Path, command: str, project_name: str | None = None
    ):
        """Create a new log directory for this run.

        Args:
            base_dir: Base directory for all run logs
            command: Command name (run, import, ...)
            project_name: Optional project name for subdirectory
                organization
        """
        timestamp = datetime.now().strftime('%Y%m%d-%H%M%S')

        if project_name:
            base_dir = base_dir / project_name

        self.run_dir = base_dir / f"{command}-{timestamp}"
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.run_dir / "bisect.log"

    def open_sink(self) -> BinaryIO:
        """Open the raw log sink for appending.

        Unbuffered, so bytes written here and bytes a child process
        writes to the same descriptor land in order.
        """
        return open(self.log_file, "ab", buffering=0)  # noqa: SIM115
