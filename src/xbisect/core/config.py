"""Application state and configuration."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from xbisect.core.base import BaseConfig, BaseState
from xbisect.core.log import Logger
from xbisect.core.request import BisectRequest
from xbisect.core.result import SessionOutcome
from xbisect.core.yaml_settings import YamlWithIncludesSettingsSource

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_cache_dir}, {os.getcwd}, {Path.home}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}


def default_home() -> Path:
    """App data directory: $XBISECT_HOME, else the platform data dir."""
    override = os.environ.get("XBISECT_HOME")
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_data_dir("xbisect", appauthor=False))


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class FailurePolicy(str, Enum):
    """Exit status the wrapper script reports when a step fails."""

    PASSTHROUGH = "passthrough"  # the failing step's own status
    BAD = "bad"                  # always 1
    SKIP = "skip"                # always the skip exit code


class BisectConfig(BaseConfig):
    """Bisect run behaviour."""

    skip_exit_code: int = Field(
        default=125,
        description="Exit status git bisect run treats as 'skip'",
    )
    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.PASSTHROUGH,
        alias="failure-policy",
        description=(
            "How a failing step is reported to git bisect: "
            "'passthrough' (the step's exit status), 'bad' (exit 1), "
            "or 'skip' (the skip exit code)"
        ),
    )
    repo_subdir: str = Field(
        default="_repo",
        description="Directory inside each workspace holding the copy",
    )

    model_config = ConfigDict(populate_by_name=True)


class GitCommands(BaseConfig):
    """Command templates for the version-control primitive.

    Placeholders are filled with shell-quoted values.
    """

    bisect_reset: str = "git bisect reset"
    bisect_start: str = "git bisect start"
    bisect_good: str = "git bisect good {revision}"
    bisect_bad: str = "git bisect bad {revision}"
    bisect_run: str = "git bisect run {script}"
    rev_parse_head: str = "git rev-parse HEAD"
    clone: str = "git clone {url} {dest}"


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    home: Path = Field(
        default_factory=default_home,
        description=(
            "App data directory holding repos/, cache/ and the "
            "project registry (XBISECT_HOME overrides the default)"
        ),
    )
    log_root: Path | None = Field(
        default=None,
        description=(
            "Root directory for run logs, defaults to <home>/logs "
            "(supports {platformdirs.*} templates)"
        ),
    )
    log_level: str | None = Field(
        default=None,
        alias="log-level",
        description=(
            "Console log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    bisect: BisectConfig = Field(
        default_factory=BisectConfig,
        description="Bisect run settings",
    )
    git: GitCommands = Field(
        default_factory=GitCommands,
        description="git command templates",
    )

    model_config = ConfigDict(populate_by_name=True)

    @property
    def repos_dir(self) -> Path:
        """Where imported projects are cloned."""
        return self.home / "repos"

    @property
    def cache_dir(self) -> Path:
        """Where bisect workspaces are staged."""
        return self.home / "cache"

    @property
    def registry_file(self) -> Path:
        return self.home / "projects.yaml"

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Resolve derived paths and configure the global logger."""
        from xbisect.core.log import setup_logger

        if self.log_root is None:
            self.log_root = self.home / "logs"

        if self.logger is None:
            self.logger = Logger()
        if self.log_level:
            self.logger.console.level = self.log_level

        setup_logger(
            log_root=self.log_root,
            run_name="xbisect",
            console=self.logger.console,
            file=self.logger.file,
            level=self.logger.level,
        )

        from xbisect.core.yaml_settings import _cleanup_bootstrap_logger
        _cleanup_bootstrap_logger()

        return self

    def close(self):
        """Close the global logger, then the children."""
        from xbisect.core.log import logger
        if logger is not None:
            logger.close()

        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class RunState(BaseState):
    """Bisect run workflow state."""

    request: BisectRequest | None = Field(
        default=None,
        description="Validated request for this run",
    )
    workspace: Any = Field(
        default=None,
        description="Staged Workspace",
    )
    log_dir: Any = Field(
        default=None,
        description="RunLogDir holding the raw bisect log",
    )
    outcome: SessionOutcome | None = Field(
        default=None,
        description="Parsed results of the bisect session",
    )
    report: list[str] = Field(
        default_factory=list,
        description="Rendered report lines",
    )
    status: str = Field(
        default="pending",
        description="pending, staged, completed, failed",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ImportState(BaseState):
    """Import workflow state."""

    name: str = ""
    url: str = ""
    local_path: Path | None = None
    status: str = "pending"


class CleanState(BaseState):
    """Clean workflow state."""

    removed: bool = False


class Runtime(BaseModel):
    """Runtime state for every workflow."""

    run: RunState = Field(default_factory=RunState)
    import_: ImportState = Field(
        default_factory=ImportState, alias="import"
    )
    clean: CleanState = Field(default_factory=CleanState)

    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Complete application state - configuration and runtime.

    The one object that flows through every workflow: config is
    loaded from YAML/env/CLI and then left alone, runtime is mutated
    by workflow nodes.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="xbisect.yaml",
        env_file=".env",
        env_prefix="XBISECT_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority, highest first: init arguments, environment
        variables, .env, YAML files with includes, file secrets.

        The YAML layer always holds the package defaults, so the
        environment has to rank above it to override any of them.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Substitute {config.*} and {platformdirs.*} templates in
        configuration strings and paths.
        """
        self._substitute_recursive(self.config)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value
        if isinstance(value, str):
            new = self._substitute_string(value)
            return value if new == value else new
        elif isinstance(value, Path):
            new = self._substitute_string(str(value))
            return value if new == str(value) else Path(new)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual values.

        Unknown names such as the {revision} placeholders of git
        command templates are left untouched.

        Examples:
            "{config.home}/scripts" -> "/home/user/.local/share/xbisect/scripts"
            "{platformdirs.user_cache_dir}" -> "/home/user/.cache/xbisect"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    obj = obj('xbisect', appauthor=False)

                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = [
    "State",
    "Config",
    "BisectConfig",
    "GitCommands",
    "FailurePolicy",
    "Runtime",
    "RunState",
]
