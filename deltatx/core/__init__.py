"""
core/ - Delta tracking and the intercepted view

Provides the pending-change store and the merged mapping callers read and
write through.
"""

from .delta import (
    DELETED,
    DeltaStore,
)

from .view import InterceptedView

__all__ = [
    "DELETED",
    "DeltaStore",
    "InterceptedView",
]
