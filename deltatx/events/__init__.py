"""
events/ - Lifecycle hooks

Instance-scoped before/after listeners for transaction operations.
"""

from .hooks import (
    Operation,
    Phase,
    Listener,
    EventHooks,
    HOOKABLE_OPERATIONS,
    LOGGABLE_OPERATIONS,
)

__all__ = [
    "Operation",
    "Phase",
    "Listener",
    "EventHooks",
    "HOOKABLE_OPERATIONS",
    "LOGGABLE_OPERATIONS",
]
