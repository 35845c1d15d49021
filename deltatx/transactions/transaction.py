"""
transactions/transaction.py - Single-record transaction

Buffers writes to one mapping in a DeltaStore until commit() applies them
or rollback() discards them.

Listener failures propagate out of commit()/rollback() and leave the
transaction partially transitioned (e.g. the record already updated when an
after-commit listener raises). These operations are not exception-safe with
respect to listeners.
"""

from __future__ import annotations
from collections.abc import MutableMapping
from typing import Any, Dict, Optional
import logging

from ..audit import Clock
from ..bootstrap.config import TransactionConfig
from ..core import DELETED, DeltaStore, InterceptedView
from ..events import Operation
from .base import TransactionBase
from .scheduling import Scheduler

logger = logging.getLogger("deltatx.transactions")


class Transaction(TransactionBase):
    """
    Transactional overlay over one record.

    Usage:
        txn = Transaction.start({"name": "Marcus Aurelius", "born": 121})
        txn.view["born"] = 1893
        txn.commit()
    """

    def __init__(
        self,
        record: MutableMapping,
        *,
        config: Optional[TransactionConfig] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
    ):
        if not isinstance(record, MutableMapping):
            raise TypeError(f"Record must be a mutable mapping, got {type(record).__name__}")

        super().__init__(config=config, scheduler=scheduler, clock=clock)
        self.record = record
        self.delta = DeltaStore(record)
        self.view = InterceptedView(self)

        self._write_log(Operation.STARTED)

    @classmethod
    def start(cls, record: MutableMapping, **kwargs: Any) -> "Transaction":
        """Begin a transaction over a record."""
        txn = cls(record, **kwargs)
        logger.debug(f"Transaction started over {len(record)} field(s)")
        return txn

    def _snapshot(self) -> Dict[str, Any]:
        return self.delta.snapshot()

    def _data(self) -> MutableMapping:
        return self.record

    # === VIEW ACCESS ===

    def _read(self, field: str) -> Any:
        with self._lock:
            self.hooks.run_before(Operation.GET, field)
            if field in self.delta:
                if self.delta.is_deleted(field):
                    raise KeyError(field)
                value = self.delta.get(field)
            else:
                value = self.record[field]
            self.hooks.run_after(Operation.GET, field)
            return value

    def _write(self, field: str, value: Any) -> None:
        with self._lock:
            self.hooks.run_before(Operation.SET, field, value)
            self.delta.set(field, value)
            if self.config.log_writes:
                self._write_log(Operation.SET)
            self.hooks.run_after(Operation.SET, field, value)

    def _remove(self, field: str) -> None:
        with self._lock:
            self.hooks.run_before(Operation.SET, field, DELETED)
            self.delta.delete(field)
            if self.config.log_writes:
                self._write_log(Operation.SET)
            self.hooks.run_after(Operation.SET, field, DELETED)

    # === LIFECYCLE ===

    def commit(self) -> None:
        """
        Apply every pending change to the record.

        The log entry captures the delta as it was before the merge.
        """
        with self._lock:
            self._cancel_timer("superseded by commit")
            self._write_log(Operation.COMMIT)
            self.hooks.run_before(Operation.COMMIT)
            changed = len(self.delta)
            self.delta.apply()
            self.hooks.run_after(Operation.COMMIT)
            self.delta.clear()
            logger.debug(f"Committed {changed} change(s)")

    def rollback(self) -> None:
        """Discard every pending change. The record is not touched."""
        with self._lock:
            self._cancel_timer("superseded by rollback")
            self._write_log(Operation.ROLLBACK)
            self.hooks.run_before(Operation.ROLLBACK)
            discarded = len(self.delta)
            self.delta.clear()
            self.hooks.run_after(Operation.ROLLBACK)
            logger.debug(f"Rolled back {discarded} change(s)")

    def clone(self) -> "Transaction":
        """
        Fork this transaction without committing it.

        The fork overlays the same record and starts with a deep copy of the
        current delta. Hooks, log and timers are not shared.
        """
        with self._lock:
            forked = type(self)(
                self.record,
                config=self.config,
                scheduler=self.scheduler,
                clock=self._clock,
            )
            forked.delta.update(self.delta.to_dict())
            return forked

    @property
    def pending(self) -> bool:
        """True if there are uncommitted changes."""
        return bool(self.delta)

    def __repr__(self) -> str:
        return f"Transaction(record={self.record!r}, delta={self.delta.to_dict()!r})"
