"""Exception hierarchy for bisection runs.

Every failure a command can report derives from XbisectError. None of
them are retried; the command that catches one logs the cause and exits
non-zero.
"""


class XbisectError(Exception):
    """Base class for all xbisect failures."""


class ValidationError(XbisectError):
    """Malformed request, unknown project, or invalid import input.

    Always raised before any subprocess is spawned.
    """


class WorkspaceError(XbisectError):
    """The workspace directory could not be created or populated."""


class SessionSetupError(XbisectError):
    """git bisect reset/start/good/bad or rev-parse failed."""


class LaunchError(XbisectError):
    """The git bisect run child process could not be spawned."""


class ProtocolError(XbisectError):
    """The bisect output stream violated the expected line protocol."""


class WaitError(XbisectError):
    """The git bisect run child process could not be awaited."""


class CloneError(XbisectError):
    """git clone failed while importing a project."""


__all__ = [
    "XbisectError",
    "ValidationError",
    "WorkspaceError",
    "SessionSetupError",
    "LaunchError",
    "ProtocolError",
    "WaitError",
    "CloneError",
]
