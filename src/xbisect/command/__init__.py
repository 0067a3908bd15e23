"""CLI command modules for xbisect."""

from xbisect.command.clean import CleanCommand
from xbisect.command.import_ import ImportCommand
from xbisect.command.run import RunCommand

__all__ = ["CleanCommand", "ImportCommand", "RunCommand"]
