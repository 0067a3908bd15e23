"""Validated bisection request."""

import re
from pathlib import Path

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator

from xbisect.core.errors import ValidationError

# Step names end up inside shell variables and marker lines
IDENTIFIER_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


def is_identifier(value: str) -> bool:
    """Whether value only contains alphanumerics, dash and underscore."""
    return bool(IDENTIFIER_RE.match(value))


class BisectRequest(BaseModel):
    """One bisection run's input. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    project: str
    lo: str
    hi: str
    steps: tuple[str, ...]
    script: Path

    @field_validator("project", "lo", "hi")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("steps")
    @classmethod
    def _valid_steps(cls, steps: tuple[str, ...]) -> tuple[str, ...]:
        if not steps:
            raise ValueError("no steps provided to execute")
        for step in steps:
            if not is_identifier(step):
                raise ValueError(
                    f"invalid step name {step!r}: only alphanumeric "
                    f"and underscore/dash allowed"
                )
        return steps

    @field_validator("script")
    @classmethod
    def _absolute_script(cls, script: Path) -> Path:
        return script.expanduser().resolve()

    @classmethod
    def create(cls, **fields) -> "BisectRequest":
        """Build a request, converting pydantic errors to ValidationError.

        Raises:
            ValidationError: If any field is malformed
        """
        try:
            return cls(**fields)
        except pydantic.ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid bisect request: {messages}") from e
