"""Workflow nodes for graph state machine."""

from xbisect.workflow.nodes.bisect import RunBisect
from xbisect.workflow.nodes.clean import Clean
from xbisect.workflow.nodes.import_repo import ImportRepo
from xbisect.workflow.nodes.report import Report
from xbisect.workflow.nodes.stage import StageWorkspace
from xbisect.workflow.nodes.validate import ValidateRequest

__all__ = [
    "ValidateRequest",
    "StageWorkspace",
    "RunBisect",
    "Report",
    "ImportRepo",
    "Clean",
]
