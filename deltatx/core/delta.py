"""
core/delta.py - Pending field overrides for one record

The delta only ever holds the true diff from the live record: writing a
field back to the record's current value drops the override.
"""

from __future__ import annotations
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Set
import copy
import logging

logger = logging.getLogger("deltatx.core.delta")


class _Deleted:
    """Marker for a field pending removal from the record."""

    _instance = None

    def __new__(cls) -> "_Deleted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<DELETED>"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Deleted":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Deleted":
        return self

    def __reduce__(self):
        return (_Deleted, ())


DELETED = _Deleted()

_MISSING = object()


def _same_value(current: Any, value: Any) -> bool:
    if current is value:
        return True
    return type(current) is type(value) and current == value


class DeltaStore:
    """
    Field-level overrides pending against a single record.

    The record is read on every write so comparisons are always made against
    its live value, never a cached original.
    """

    def __init__(self, record: MutableMapping[str, Any]):
        self._record = record
        self._changes: Dict[str, Any] = {}

    @property
    def record(self) -> MutableMapping[str, Any]:
        return self._record

    def get(self, field: str, default: Any = None) -> Any:
        """Get the pending value for a field, or default."""
        return self._changes.get(field, default)

    def set(self, field: str, value: Any) -> None:
        """
        Stage a new value for a field.

        If the value equals what the record currently holds (same type and
        ==), the pending override is removed instead. Writing True over 1
        is a change.
        """
        current = self._record.get(field, _MISSING)
        if current is not _MISSING and _same_value(current, value):
            if self._changes.pop(field, _MISSING) is not _MISSING:
                logger.debug(f"Override for {field!r} cancelled (matches record)")
            return
        self._changes[field] = value

    def delete(self, field: str) -> None:
        """
        Stage removal of a field.

        Raises:
            KeyError: If the field exists in neither the record nor the delta
        """
        if field in self._record:
            self._changes[field] = DELETED
        elif field in self._changes and self._changes[field] is not DELETED:
            del self._changes[field]
        else:
            raise KeyError(field)

    def discard(self, field: str) -> bool:
        """Drop any override for a field. Returns True if one was present."""
        return self._changes.pop(field, _MISSING) is not _MISSING

    def is_deleted(self, field: str) -> bool:
        return self._changes.get(field, _MISSING) is DELETED

    def update(self, changes: Mapping[str, Any]) -> None:
        """Seed overrides verbatim (used when forking a transaction)."""
        self._changes.update(copy.deepcopy(dict(changes)))

    def apply(self) -> None:
        """Merge every override into the record."""
        for field, value in self._changes.items():
            if value is DELETED:
                self._record.pop(field, None)
            else:
                self._record[field] = value

    def clear(self) -> None:
        self._changes.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the overrides, immune to later mutation."""
        return copy.deepcopy(self._changes)

    def keys(self) -> Set[str]:
        return set(self._changes)

    def to_dict(self) -> Dict[str, Any]:
        """Shallow copy of the overrides in insertion order."""
        return dict(self._changes)

    def __contains__(self, field: object) -> bool:
        return field in self._changes

    def __iter__(self) -> Iterator[str]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __bool__(self) -> bool:
        return bool(self._changes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DeltaStore):
            return self._changes == other._changes
        if isinstance(other, Mapping):
            return self._changes == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"DeltaStore({self._changes!r})"
