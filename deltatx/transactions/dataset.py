"""
transactions/dataset.py - Fan-out transaction over a sequence of records

One member Transaction per record; commit, rollback and timeout fan out to
the members in index order.

Known limitation: there is no atomicity across members. If a member's
commit raises, members before it stay committed and members after it are
left pending.
"""

from __future__ import annotations
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging

from ..audit import Clock, LogEntry
from ..bootstrap.config import TransactionConfig
from ..core import InterceptedView
from ..errors import RollbackTargetNotFoundError
from ..events import Operation
from .base import TransactionBase
from .scheduling import Scheduler
from .transaction import Transaction

logger = logging.getLogger("deltatx.transactions.dataset")


class DatasetTransaction(TransactionBase):
    """
    Transaction coordinating one member transaction per record.

    Each log entry stores the merged state of every member, keyed by member
    index as a string, so rollback(entry_id) can restore any logged point.
    """

    def __init__(
        self,
        dataset: Sequence[MutableMapping],
        *,
        config: Optional[TransactionConfig] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
    ):
        if isinstance(dataset, (MutableMapping, str, bytes)):
            raise TypeError("Dataset must be a sequence of records")

        super().__init__(config=config, scheduler=scheduler, clock=clock)
        self.members: List[Transaction] = [
            Transaction(record, config=self.config, scheduler=self.scheduler, clock=clock)
            for record in dataset
        ]

        self._write_log(Operation.STARTED)

    @classmethod
    def start(cls, dataset: Sequence[MutableMapping], **kwargs: Any) -> "DatasetTransaction":
        """Begin a fan-out transaction over a sequence of records."""
        txn = cls(dataset, **kwargs)
        logger.debug(f"Dataset transaction started over {len(txn.members)} record(s)")
        return txn

    def _snapshot(self) -> Dict[str, Any]:
        snapshot = {}
        for i, member in enumerate(self.members):
            with member._lock:
                snapshot[str(i)] = member.view.to_dict()
        return snapshot

    def _data(self) -> List[MutableMapping]:
        return self.records

    # === MEMBER ACCESS ===

    @property
    def dataset(self) -> List[InterceptedView]:
        """Member views, in record order."""
        return [member.view for member in self.members]

    @property
    def records(self) -> List[MutableMapping]:
        return [member.record for member in self.members]

    def __iter__(self) -> Iterator[InterceptedView]:
        return iter(self.dataset)

    def __len__(self) -> int:
        return len(self.members)

    def __getitem__(self, index: int) -> InterceptedView:
        return self.members[index].view

    @property
    def pending(self) -> bool:
        return any(member.pending for member in self.members)

    # === LIFECYCLE ===

    def commit(self) -> None:
        """Commit every member in index order."""
        with self._lock:
            self._cancel_timer("superseded by commit")
            self._write_log(Operation.COMMIT)
            self.hooks.run_before(Operation.COMMIT)
            for member in self.members:
                member.commit()
            self.hooks.run_after(Operation.COMMIT)

    def rollback(self, entry_id: Optional[int] = None) -> bool:
        """
        Roll back pending changes, or restore a logged point in time.

        Without an id every member discards its pending changes. With an
        id, every member is reconciled to the state recorded in that log
        entry (fields added since are removed, changed fields restored) and
        committed immediately.

        Args:
            entry_id: Log entry to restore

        Returns:
            False if entry_id does not exist (non-strict mode), else True

        Raises:
            RollbackTargetNotFoundError: If entry_id does not exist and
                strict_rollback is configured
        """
        with self._lock:
            self._cancel_timer("superseded by rollback")
            self._write_log(Operation.ROLLBACK)
            self.hooks.run_before(Operation.ROLLBACK)

            applied = True
            if entry_id is None:
                for member in self.members:
                    member.rollback()
            else:
                entry = self.log.find_by_id(entry_id)
                if entry is None:
                    if self.config.strict_rollback:
                        raise RollbackTargetNotFoundError(entry_id, len(self.log))
                    logger.warning(f"Cannot rollback: log entry {entry_id} not found")
                    applied = False
                else:
                    self._restore(entry)

            self.hooks.run_after(Operation.ROLLBACK)
            return applied

    def _restore(self, entry: LogEntry) -> None:
        state = entry.delta
        for index, member in enumerate(self.members):
            target = state.get(str(index))
            if target is None:
                logger.warning(f"Log entry {entry.id} holds no state for member {index}")
                continue

            view = member.view
            with member._lock:
                for field in list(view):
                    if field not in target:
                        del view[field]
                for field, value in target.items():
                    view[field] = value
                member.commit()

        logger.info(f"Restored {len(self.members)} record(s) to log entry {entry.id}")

    def clone(self) -> "DatasetTransaction":
        """Fork every member into a new dataset transaction over the same records."""
        with self._lock:
            forked = type(self)(
                self.records,
                config=self.config,
                scheduler=self.scheduler,
                clock=self._clock,
            )
            for source, target in zip(self.members, forked.members):
                target.delta.update(source.delta.to_dict())
            return forked

    def __repr__(self) -> str:
        return f"DatasetTransaction(members={len(self.members)})"
