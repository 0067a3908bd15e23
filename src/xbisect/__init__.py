"""xbisect - automated git bisection over named verification steps."""

__version__ = "0.1.0"
