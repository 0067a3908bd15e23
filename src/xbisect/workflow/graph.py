"""Graph workflow definition."""

from pydantic_graph import Graph

from xbisect.core.config import State
from xbisect.core.log import logger


def create_run_workflow(state_type: type = State) -> Graph:
    """Create the bisect run workflow graph.

    ValidateRequest → StageWorkspace → RunBisect → Report → End

    Returns:
        Graph workflow with state_type as its state
    """
    logger.debug("Building workflow graph")

    # Import nodes (lazy to avoid circular imports)
    from xbisect.workflow.nodes.bisect import RunBisect
    from xbisect.workflow.nodes.report import Report
    from xbisect.workflow.nodes.stage import StageWorkspace
    from xbisect.workflow.nodes.validate import ValidateRequest

    return Graph(
        nodes=(
            ValidateRequest,
            StageWorkspace,
            RunBisect,
            Report,
        ),
        state_type=state_type,
    )
