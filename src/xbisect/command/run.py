"""Run command - bisect a project with a step script."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_graph import End

from xbisect.core.errors import XbisectError
from xbisect.core.log import logger


class RunCommand(BaseModel):
    """Bisect an imported project between two revisions.

    The project is copied into a fresh cache directory and git bisect
    runs SCRIPT once per step at every candidate revision, passing the
    step name as its only argument. The results of every step at every
    tested revision are printed when the bisection ends.
    """

    repo: str = Field(description="Name of an imported project")
    lo: str = Field(description="Known good revision")
    hi: str = Field(description="Known bad revision")
    steps: list[str] = Field(
        description="Step names, run in order, e.g. --steps build,test"
    )
    script: Path = Field(
        description="Script invoked as 'SCRIPT <step>' for every step"
    )

    async def run_workflow(self, state: "State") -> int:
        """Run bisect workflow.

        Args:
            state: State instance with config loaded and runtime initialized

        Returns:
            Exit code (0=bisect ran cleanly, 1=failure)
        """
        from xbisect.workflow.graph import create_run_workflow
        from xbisect.workflow.nodes.validate import ValidateRequest

        workflow = create_run_workflow(type(state))
        start = ValidateRequest(
            project=self.repo,
            lo=self.lo,
            hi=self.hi,
            steps=self.steps,
            script=self.script,
        )

        try:
            async with workflow.iter(start, state=state) as run:
                async for node in run:
                    if isinstance(node, End):
                        return node.data
        except XbisectError as e:
            logger.error("Bisect failed: {error}", error=str(e))
            log_dir = state.runtime.run.log_dir
            if log_dir is not None:
                logger.error(
                    "Raw bisect log: {path}", path=str(log_dir.log_file)
                )
            return 1

        logger.error("Bisect failed - workflow ended unexpectedly")
        return 1
