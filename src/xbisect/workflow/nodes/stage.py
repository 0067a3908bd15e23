"""StageWorkspace node - copy the project into a fresh cache directory."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from xbisect.core.config import State
from xbisect.core.log import logger
from xbisect.tools.registry import ProjectRegistry
from xbisect.tools.workspace import WorkspaceStager


@dataclass
class StageWorkspace(BaseNode[State]):
    """Stage an isolated copy of the requested project."""

    async def run(self, ctx: GraphRunContext[State]) -> "RunBisect":
        config = ctx.state.config
        request = ctx.state.runtime.run.request

        project = ProjectRegistry.load(config.registry_file).get(request.project)
        stager = WorkspaceStager(
            config.cache_dir, repo_subdir=config.bisect.repo_subdir
        )
        workspace = stager.stage(request.project, project.local_path)
        logger.info(
            "Staged {project} in {path}",
            project=request.project, path=str(workspace.repo),
        )

        ctx.state.runtime.run.workspace = workspace
        ctx.state.runtime.run.status = "staged"

        from xbisect.workflow.nodes.bisect import RunBisect
        return RunBisect()
