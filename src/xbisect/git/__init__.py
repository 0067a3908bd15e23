"""git operations: bisect sessions and cloning."""

from xbisect.git.bisect import BisectSession, SessionState
from xbisect.git.clone import clone_repository

__all__ = ["BisectSession", "SessionState", "clone_repository"]
