"""Registry of imported projects, stored as YAML."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from xbisect.core.log import logger


class ProjectInfo(BaseModel):
    """One imported project."""

    name: str
    remote: str
    # Location of the clone on the local filesystem
    local_path: Path


class RegistryLayout(BaseModel):
    """On-disk layout of projects.yaml."""

    projects: list[ProjectInfo] = Field(default_factory=list)


class ProjectRegistry:
    """Registry of known projects, keyed by lowercase name.

    Loaded from and saved to a single YAML file.
    """

    def __init__(self, path: Path, data: RegistryLayout | None = None):
        """Initialize registry.

        Args:
            path: YAML file backing the registry
            data: Already loaded contents
        """
        self.path = path
        self.data = data or RegistryLayout()

    @classmethod
    def load(cls, path: Path) -> "ProjectRegistry":
        """Load the registry; a missing or empty file yields no projects."""
        if not path.is_file():
            logger.debug(
                "Registry not found, starting empty: {path}", path=str(path)
            )
            return cls(path)

        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return cls(path, RegistryLayout.model_validate(raw))

    def get(self, name: str) -> ProjectInfo | None:
        """Look up a project by name, case-insensitively."""
        name = name.lower()
        for project in self.data.projects:
            if project.name == name:
                return project
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def add(self, name: str, local_path: Path, remote: str) -> bool:
        """Register a project unless the name is taken.

        Returns:
            True if added, False if a project with that name exists
        """
        name = name.lower()
        if self.has(name):
            return False
        self.data.projects.append(
            ProjectInfo(name=name, remote=remote, local_path=local_path)
        )
        return True

    def save(self) -> None:
        """Write the registry back to its YAML file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(
                self.data.model_dump(mode="json"), f, sort_keys=False
            )
