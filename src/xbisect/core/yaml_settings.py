"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

# Bootstrap logger - created lazily to avoid circular import
_bootstrap_logger = None


def _get_bootstrap_logger():
    """Logger used while configuration is still being loaded."""
    global _bootstrap_logger
    if _bootstrap_logger is None:
        from xbisect.core.log import ConsoleSink, Logger
        _bootstrap_logger = Logger(console=ConsoleSink(level="warn"))
        _bootstrap_logger.setup(log_root=Path.home(), run_name="bootstrap")
    return _bootstrap_logger


def _cleanup_bootstrap_logger():
    """Called once Config has configured the real logger."""
    global _bootstrap_logger
    if _bootstrap_logger:
        _bootstrap_logger.close()
        _bootstrap_logger = None


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directive and --include
    CLI support.

    Deep merges, lowest priority first: package defaults
    (defaults/default.yaml) < user config (platform config dir) <
    project config (./xbisect.yaml) < --include files.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Initialize with CLI include processing.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional override for the project config path
        """
        import sys

        # Parse --include from CLI before pydantic processes it
        includes = []
        i = 1
        while i < len(sys.argv):
            if sys.argv[i] == "--include" and i + 1 < len(sys.argv):
                includes.append(sys.argv[i + 1])
                i += 1
            i += 1

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        """Load defaults, user config, project config, and includes.

        Files are always deep merged, whatever deep_merge says.

        Args:
            files: Project config and --include file path(s)

        Returns:
            Deep-merged dictionary of all loaded data
        """
        result = {}

        files_to_load = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir("xbisect", appauthor=False))
            / "xbisect.yaml",
        ]

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        seen = set()
        for file_path in files_to_load:
            if file_path in seen:
                continue
            seen.add(file_path)
            if file_path.is_file():
                _get_bootstrap_logger().debug(
                    "Loading configuration", file=str(file_path)
                )
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
            else:
                _get_bootstrap_logger().debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load file and resolve include: directives recursively.

        Raises:
            ValueError: If circular include detected
        """
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        if "include" in data:
            includes = data.pop("include")
            if isinstance(includes, str):
                includes = [includes]

            for inc in includes:
                inc_path = self._resolve_path(inc, filepath)
                inc_data = self._load_file_recursive(
                    inc_path, visited.copy()
                )
                # Including file wins over what it includes
                data = self._deep_merge(inc_data, data)

        return data

    def _resolve_path(
        self, include_path: str, relative_to: Path
    ) -> Path:
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
