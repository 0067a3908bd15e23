"""Building blocks of a bisect run.

Workspace staging, wrapper script generation, output stream parsing,
report rendering and the project registry.
"""

from xbisect.tools.parser import ParseState, StreamParser, consume
from xbisect.tools.registry import ProjectInfo, ProjectRegistry
from xbisect.tools.report import render, status_label
from xbisect.tools.script import render_script, write_script
from xbisect.tools.workspace import Workspace, WorkspaceStager

__all__ = [
    "ParseState",
    "StreamParser",
    "consume",
    "ProjectInfo",
    "ProjectRegistry",
    "render",
    "status_label",
    "render_script",
    "write_script",
    "Workspace",
    "WorkspaceStager",
]
