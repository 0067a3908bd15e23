"""Result types recovered from the bisect output stream."""

from pydantic import BaseModel, ConfigDict, Field


class StepResult(BaseModel):
    """Outcome of one step at one revision."""

    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    exit_status: int


class RevisionResult(BaseModel):
    """Step results attached to one tested revision, in run order."""

    revision: str
    steps: list[StepResult] = Field(default_factory=list)


class SessionOutcome(BaseModel):
    """Everything a completed bisect session produced."""

    initial_revision: str
    results: dict[str, RevisionResult]
    returncode: int
    first_bad_revision: str | None = None

    @property
    def bisect_succeeded(self) -> bool:
        """Whether git bisect run itself exited cleanly."""
        return self.returncode == 0
