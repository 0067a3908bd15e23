"""ValidateRequest node - check the run arguments against the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic_graph import BaseNode, GraphRunContext

from xbisect.core.config import State
from xbisect.core.errors import ValidationError
from xbisect.core.log import logger
from xbisect.core.request import BisectRequest
from xbisect.tools.registry import ProjectRegistry


@dataclass
class ValidateRequest(BaseNode[State]):
    """Build the BisectRequest and make sure the project is known.

    Nothing is spawned or written before this node succeeds.
    """

    project: str
    lo: str
    hi: str
    steps: list[str] = field(default_factory=list)
    script: Path = Path()

    async def run(self, ctx: GraphRunContext[State]) -> "StageWorkspace":
        request = BisectRequest.create(
            project=self.project.lower(),
            lo=self.lo,
            hi=self.hi,
            steps=tuple(self.steps),
            script=self.script,
        )

        registry = ProjectRegistry.load(ctx.state.config.registry_file)
        if not registry.has(request.project):
            raise ValidationError(
                f"Unknown project '{request.project}'. "
                f"Import it first with: xbisect import"
            )
        if not request.script.is_file():
            raise ValidationError(f"Bisect script not found: {request.script}")

        logger.debug(
            "Validated bisect request",
            project=request.project,
            lo=request.lo,
            hi=request.hi,
            steps=list(request.steps),
            script=str(request.script),
        )
        ctx.state.runtime.run.request = request

        from xbisect.workflow.nodes.stage import StageWorkspace
        return StageWorkspace()
