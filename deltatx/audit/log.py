"""
audit/log.py - Append-only lifecycle log

Every lifecycle operation appends one immutable entry carrying a deep copy
of the pending state at the moment the operation was invoked.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from datetime import datetime, timezone
import copy
import logging

from ..core.delta import DELETED
from ..events.hooks import Operation, LOGGABLE_OPERATIONS
from .schemas import AuditTrail, LogRecord

logger = logging.getLogger("deltatx.audit")

# Clock collaborator: returns the current time as an aware datetime
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _export_value(value: Any) -> Any:
    if value is DELETED:
        return None
    if isinstance(value, dict):
        return {k: _export_value(v) for k, v in value.items()}
    return value


class LogEntry:
    """
    One lifecycle operation and the pending state when it was invoked.

    Immutable: attributes cannot be rebound, and `delta` returns a fresh
    deep copy of the stored state on every access.
    """

    __slots__ = ("id", "operation", "_delta", "timestamp")

    def __init__(
        self,
        id: int,
        operation: Operation,
        delta: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ):
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "operation", Operation(operation))
        object.__setattr__(self, "_delta", copy.deepcopy(delta or {}))
        object.__setattr__(self, "timestamp", timestamp or utc_now())

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"LogEntry is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"LogEntry is immutable; cannot delete {name!r}")

    @property
    def delta(self) -> Dict[str, Any]:
        """Copy of the pending state recorded with this entry."""
        return copy.deepcopy(self._delta)

    @property
    def time(self) -> str:
        """ISO-8601 timestamp."""
        return self.timestamp.isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Export shape. Pending deletions are exported as None."""
        return {
            "id": self.id,
            "time": self.time,
            "operation": self.operation.value,
            "delta": _export_value(self.delta),
        }

    def to_record(self) -> LogRecord:
        return LogRecord.model_validate(self.to_dict())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogEntry):
            return NotImplemented
        return (
            self.id == other.id
            and self.operation == other.operation
            and self.timestamp == other.timestamp
            and self._delta == other._delta
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"LogEntry(id={self.id}, operation={self.operation.value!r}, time={self.time!r})"


class AuditLog:
    """
    Ordered, append-only sequence of LogEntry.

    Ids start at 0 and increase by one per entry regardless of operation.
    Entries are never reordered, replaced or truncated.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now
        self._entries: List[LogEntry] = []
        self._next_id = 0

    def append(self, operation: Operation, delta: Any) -> LogEntry:
        """
        Append an entry for an operation.

        Args:
            operation: Lifecycle operation being logged
            delta: Pending state; stored as a deep copy

        Returns:
            The appended entry
        """
        operation = Operation(operation)
        if operation not in LOGGABLE_OPERATIONS:
            raise ValueError(f"Operation {operation.value!r} is not logged")

        entry = LogEntry(
            id=self._next_id,
            operation=operation,
            delta=delta,
            timestamp=self._clock(),
        )
        self._entries.append(entry)
        self._next_id += 1

        logger.debug(f"Log entry {entry.id}: {operation.value}")
        return entry

    def find_by_id(self, entry_id: int) -> Optional[LogEntry]:
        """Get an entry by id, or None if no such entry exists."""
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            return None
        # Ids are dense from 0, so the id is also the list index
        if 0 <= entry_id < len(self._entries):
            return self._entries[entry_id]
        return None

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)

    @property
    def last(self) -> Optional[LogEntry]:
        return self._entries[-1] if self._entries else None

    def operations(self) -> List[str]:
        """Operation names in log order."""
        return [e.operation.value for e in self._entries]

    def to_list(self) -> List[Dict[str, Any]]:
        """Export every entry as a dict."""
        return [e.to_dict() for e in self._entries]

    def to_records(self) -> List[LogRecord]:
        """Export every entry as a validated LogRecord."""
        return [e.to_record() for e in self._entries]

    def to_trail(self) -> AuditTrail:
        """Export the whole log as one AuditTrail model."""
        return AuditTrail(entries=self.to_records())

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> LogEntry:
        return self._entries[index]
