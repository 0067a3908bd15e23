"""Report node - print the per-revision step results."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from xbisect.core.config import State
from xbisect.core.log import logger
from xbisect.tools.report import render


@dataclass
class Report(BaseNode[State, None, int]):
    """Render the outcome and finish with the command's exit code."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        """Log one line per tested step.

        Returns:
            End[int]: 0 if git bisect run exited cleanly, else 1
        """
        config = ctx.state.config
        run_state = ctx.state.runtime.run
        outcome = run_state.outcome

        run_state.report = render(
            outcome.results,
            skip_exit_code=config.bisect.skip_exit_code,
            colors=config.logger.console.use_colors(),
            first_bad_revision=outcome.first_bad_revision,
        )
        if not run_state.report:
            logger.warn("No step results were found in the bisect output")
        for line in run_state.report:
            logger.info("{line}", line=line)

        logger.info(
            "Raw bisect log: {path}", path=str(run_state.log_dir.log_file)
        )
        return End(0 if outcome.bisect_succeeded else 1)
