"""
events/hooks.py - Before/after lifecycle hooks

Each transaction owns one EventHooks registry; nothing is shared between
transactions. Listeners run synchronously in registration order and their
exceptions propagate to whoever triggered the operation.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Union
from enum import Enum
import logging

from ..errors import UnknownOperationError

logger = logging.getLogger("deltatx.events")


class Operation(str, Enum):
    """Lifecycle operations that can be logged or hooked."""

    STARTED = "started"
    SET = "set"
    GET = "get"
    COMMIT = "commit"
    ROLLBACK = "rollback"
    REVOKE = "revoke"
    TIMEOUT = "timeout"


HOOKABLE_OPERATIONS = frozenset([
    Operation.COMMIT, Operation.ROLLBACK, Operation.REVOKE,
    Operation.TIMEOUT, Operation.SET, Operation.GET,
])

LOGGABLE_OPERATIONS = frozenset([
    Operation.STARTED, Operation.SET, Operation.COMMIT,
    Operation.ROLLBACK, Operation.REVOKE, Operation.TIMEOUT,
])


# Type alias for hook listeners
Listener = Callable[..., Any]


class Phase(str, Enum):
    BEFORE = "before"
    AFTER = "after"


class EventHooks:
    """
    Per-operation ordered lists of before/after listeners.

    Supports:
    - before()/after() registration, on() as an alias of after()
    - Removal of a single listener or clearing by operation
    - Synchronous dispatch with operation arguments (e.g. timeout msec)
    """

    def __init__(self):
        self._listeners: Dict[Operation, Dict[Phase, List[Listener]]] = {
            op: {Phase.BEFORE: [], Phase.AFTER: []}
            for op in HOOKABLE_OPERATIONS
        }

    @staticmethod
    def resolve(operation: Union[str, Operation]) -> Operation:
        """
        Map an operation name to a hookable Operation.

        Raises:
            UnknownOperationError: If the name is not a hookable operation
        """
        try:
            op = Operation(operation)
        except ValueError:
            op = None
        if op not in HOOKABLE_OPERATIONS:
            raise UnknownOperationError(
                operation, known=[o.value for o in HOOKABLE_OPERATIONS]
            )
        return op

    def before(self, operation: Union[str, Operation], listener: Listener) -> None:
        """Register a listener to run before the operation's state change."""
        self._add(operation, Phase.BEFORE, listener)

    def after(self, operation: Union[str, Operation], listener: Listener) -> None:
        """Register a listener to run after the operation's state change."""
        self._add(operation, Phase.AFTER, listener)

    def on(self, operation: Union[str, Operation], listener: Listener) -> None:
        """Alias of after()."""
        self._add(operation, Phase.AFTER, listener)

    def _add(self, operation: Union[str, Operation], phase: Phase, listener: Listener) -> None:
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
        op = self.resolve(operation)
        self._listeners[op][phase].append(listener)
        logger.debug(f"Registered {phase.value} listener for {op.value}")

    def remove(self, operation: Union[str, Operation], listener: Listener) -> bool:
        """
        Remove the first registration of a listener from either phase.

        Returns:
            True if a listener was removed
        """
        op = self.resolve(operation)
        for phase in (Phase.BEFORE, Phase.AFTER):
            try:
                self._listeners[op][phase].remove(listener)
                return True
            except ValueError:
                continue
        return False

    def clear(self, operation: Optional[Union[str, Operation]] = None) -> None:
        """Drop listeners for one operation, or for all of them."""
        ops = [self.resolve(operation)] if operation is not None else list(self._listeners)
        for op in ops:
            for listeners in self._listeners[op].values():
                listeners.clear()

    def run_before(self, operation: Union[str, Operation], *args: Any) -> None:
        self._run(self.resolve(operation), Phase.BEFORE, args)

    def run_after(self, operation: Union[str, Operation], *args: Any) -> None:
        self._run(self.resolve(operation), Phase.AFTER, args)

    def _run(self, op: Operation, phase: Phase, args: tuple) -> None:
        # Listeners added during dispatch run from the next dispatch on
        for listener in list(self._listeners[op][phase]):
            listener(*args)

    def listeners(self, operation: Union[str, Operation], phase: Union[str, Phase]) -> List[Listener]:
        """Registered listeners for an operation and phase, in order."""
        return list(self._listeners[self.resolve(operation)][Phase(phase)])

    @property
    def listener_count(self) -> int:
        """Total number of registered listeners."""
        return sum(
            len(listeners)
            for phases in self._listeners.values()
            for listeners in phases.values()
        )
