"""Clean command - remove all staged workspaces."""

from pydantic import BaseModel
from pydantic_graph import End, Graph

from xbisect.core.log import logger


class CleanCommand(BaseModel):
    """Delete the cache directory holding every bisect workspace.

    Imported projects and the registry are left alone.
    """

    async def run_workflow(self, state: "State") -> int:
        """Run clean workflow.

        Returns:
            Exit code (0=success)
        """
        from xbisect.workflow.nodes.clean import Clean

        workflow = Graph(nodes=(Clean,), state_type=type(state))

        async with workflow.iter(Clean(), state=state) as run:
            async for node in run:
                if isinstance(node, End):
                    logger.info("Clean complete")
                    return node.data

        return 1
