"""Import command - clone a project and register it."""

from pydantic import BaseModel, Field
from pydantic_graph import End, Graph

from xbisect.core.errors import XbisectError
from xbisect.core.log import logger


class ImportCommand(BaseModel):
    """Clone a git repository and register it under a project name.

    The clone lands in the repos directory under the app home; the
    name is what 'run --repo' refers to afterwards.
    """

    git: str = Field(description="URL (or path) of the repository to clone")
    name: str = Field(
        description="Project name: alphanumerics, dash and underscore"
    )

    async def run_workflow(self, state: "State") -> int:
        """Run import workflow.

        Returns:
            Exit code (0=success, 1=failure)
        """
        state.runtime.import_.url = self.git
        state.runtime.import_.name = self.name

        from xbisect.workflow.nodes.import_repo import ImportRepo

        workflow = Graph(nodes=(ImportRepo,), state_type=type(state))

        try:
            async with workflow.iter(ImportRepo(), state=state) as run:
                async for node in run:
                    if isinstance(node, End):
                        return node.data
        except XbisectError as e:
            logger.error("Import failed: {error}", error=str(e))
            return 1

        return 1
