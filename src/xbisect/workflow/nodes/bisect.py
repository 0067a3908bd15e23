"""RunBisect node - write the wrapper script and run the session."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from xbisect.core.config import State
from xbisect.core.errors import XbisectError
from xbisect.core.logdir import RunLogDir
from xbisect.git.bisect import BisectSession
from xbisect.tools.script import write_script

WRAPPER_NAME = "bisect_wrapper.sh"


@dataclass
class RunBisect(BaseNode[State]):
    """Run git bisect over the staged workspace."""

    async def run(self, ctx: GraphRunContext[State]) -> "Report":
        config = ctx.state.config
        run_state = ctx.state.runtime.run
        request = run_state.request
        workspace = run_state.workspace

        log_dir = RunLogDir(config.log_root, "run", request.project)
        run_state.log_dir = log_dir

        wrapper = write_script(
            workspace.root / WRAPPER_NAME,
            request.steps,
            request.script,
            policy=config.bisect.failure_policy,
            skip_exit_code=config.bisect.skip_exit_code,
        )

        with log_dir.open_sink() as sink:
            session = BisectSession(
                workspace.repo, wrapper, sink, commands=config.git
            )
            try:
                run_state.outcome = session.run(request.lo, request.hi)
            except XbisectError:
                run_state.status = "failed"
                raise

        run_state.status = "completed"

        from xbisect.workflow.nodes.report import Report
        return Report()
