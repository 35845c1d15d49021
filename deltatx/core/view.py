"""
core/view.py - Read/write façade over a record and its pending delta

The view is a plain MutableMapping. Reads prefer the delta, fall back to
the record; writes and deletes are routed into the delta through the owning
transaction so hooks, logging and locking apply.
"""

from __future__ import annotations
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Iterator, List, TYPE_CHECKING

from .delta import DeltaStore
from ..errors import InvalidFieldError

if TYPE_CHECKING:
    from ..transactions.transaction import Transaction


def _check_field(field: Any) -> str:
    if not isinstance(field, str):
        raise InvalidFieldError(field)
    return field


class InterceptedView(MutableMapping):
    """
    Merged (record ⊕ delta) mapping for one transaction.

    Holds no state of its own; every call is answered from the live record
    and the transaction's delta.
    """

    __slots__ = ("_transaction",)

    def __init__(self, transaction: "Transaction"):
        self._transaction = transaction

    @property
    def transaction(self) -> "Transaction":
        return self._transaction

    @property
    def record(self) -> MutableMapping:
        return self._transaction.record

    @property
    def delta(self) -> DeltaStore:
        return self._transaction.delta

    # === MAPPING PROTOCOL ===

    def __getitem__(self, field: str) -> Any:
        return self._transaction._read(_check_field(field))

    def __setitem__(self, field: str, value: Any) -> None:
        self._transaction._write(_check_field(field), value)

    def __delitem__(self, field: str) -> None:
        field = _check_field(field)
        with self._transaction._lock:
            if field not in self:
                raise KeyError(field)
            self._transaction._remove(field)

    def __contains__(self, field: object) -> bool:
        with self._transaction._lock:
            delta = self.delta
            if field in delta:
                return not delta.is_deleted(field)
            return field in self.record

    def _fields(self) -> List[str]:
        # Caller holds the transaction lock
        delta = self.delta
        fields = [f for f in self.record if not delta.is_deleted(f)]
        fields.extend(
            f for f in delta if f not in self.record and not delta.is_deleted(f)
        )
        return fields

    def __iter__(self) -> Iterator[str]:
        with self._transaction._lock:
            fields = self._fields()
        return iter(fields)

    def __len__(self) -> int:
        with self._transaction._lock:
            return len(self._fields())

    # === CONVENIENCE ===

    def to_dict(self) -> Dict[str, Any]:
        """Merged plain-dict copy. Does not fire get hooks."""
        with self._transaction._lock:
            delta = self.delta
            return {
                field: delta.get(field) if field in delta else self.record[field]
                for field in self._fields()
            }

    def clone(self) -> "InterceptedView":
        """Fork the owning transaction and return the fork's view."""
        return self._transaction.clone().view

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return self.to_dict() == dict(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"InterceptedView({self.to_dict()!r})"
