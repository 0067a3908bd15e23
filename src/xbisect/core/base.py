"""Base classes for configuration and state models.

- Closeable Protocol for resource cleanup
- BaseCloseable for automatic cleanup cascade
- BaseConfig for configuration models
- BaseState for runtime state models

Kept apart from config.py so that log.py can use them without a
circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Any model inheriting from BaseCloseable can be used in a 'with'
    statement; close() walks the model fields and closes every child
    that has the method, continuing past failures:
    State -> Config -> Logger -> Sink.
    """

    def close(self):
        """Close all closeable child objects.

        Errors are printed to stderr and do not stop the walk.
        """
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    msg = f"Warning: Error closing {field_name}: {e}"
                    print(msg, file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Marker base for runtime state sections (mutated by workflows)."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
