"""
transactions/base.py - Shared lifecycle plumbing

Audit logging, hook registration, locking and timeout handling common to
single-record and dataset transactions.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Union
import logging
import threading

from ..audit import AuditLog, Clock, LogEntry
from ..bootstrap.config import TransactionConfig, get_config
from ..events import EventHooks, Listener, Operation
from .scheduling import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger("deltatx.transactions")

# Called with True if the expired timeout committed, False if it rolled back
TimeoutListener = Callable[[bool], Any]


class TransactionBase:
    """
    Lifecycle envelope shared by every transaction type.

    Owns the audit log, the hook registry, the lock serialising caller
    threads against timer threads, and at most one armed timeout.
    """

    def __init__(
        self,
        config: Optional[TransactionConfig] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or get_config().transactions
        self.scheduler = scheduler or ThreadingScheduler(daemon=self.config.daemon_timers)
        self._clock = clock
        self.log = AuditLog(clock)
        self.hooks = EventHooks()
        self._lock = threading.RLock()
        self._timer: Optional[TimerHandle] = None

    # === SUBCLASS CONTRACT ===

    def _snapshot(self) -> Dict[str, Any]:
        """Pending state recorded with each log entry."""
        raise NotImplementedError

    def _data(self) -> Any:
        """Data handed to on() subscribers."""
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> Any:
        raise NotImplementedError

    # === LOGGING ===

    def _write_log(self, operation: Operation) -> LogEntry:
        return self.log.append(operation, self._snapshot())

    # === HOOKS ===

    def before(self, operation: Union[str, Operation], listener: Listener) -> None:
        """Register a listener run before an operation's state change."""
        self.hooks.before(operation, listener)

    def after(self, operation: Union[str, Operation], listener: Listener) -> None:
        """Register a listener run after an operation's state change."""
        self.hooks.after(operation, listener)

    def on(self, operation: Union[str, Operation], listener: Callable[[Any], Any]) -> None:
        """
        Subscribe to an operation once it has completed.

        Unlike after(), the listener is called with the transaction's data
        (the record, or the list of records for a dataset) rather than the
        operation arguments.
        """
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
        self.hooks.on(operation, lambda *args: listener(self._data()))

    # === REVOKE ===

    def revoke(self) -> None:
        """
        Reserved for undoing the most recent commit.

        Currently only logs and runs the revoke hooks; no state changes.
        """
        with self._lock:
            self._write_log(Operation.REVOKE)
            self.hooks.run_before(Operation.REVOKE)
            self.hooks.run_after(Operation.REVOKE)

    # === TIMEOUT ===

    @property
    def timeout_pending(self) -> bool:
        """True while a scheduled commit/rollback is still due to run."""
        timer = self._timer
        return timer is not None and timer.active

    def timeout(
        self,
        msec: Optional[float] = None,
        commit: bool = False,
        listener: Optional[TimeoutListener] = None,
    ) -> Optional[TimerHandle]:
        """
        Resolve the transaction automatically after a delay.

        Any previously armed timeout is replaced. A manual commit() or
        rollback() before expiry cancels the scheduled action.

        Args:
            msec: Delay in milliseconds; 0 or less only disarms. Defaults
                to the configured default_timeout_ms
            commit: True to commit on expiry, False to roll back
            listener: Called with `commit` after the expiry action ran

        Returns:
            Handle of the armed timer, or None if nothing was scheduled
        """
        if msec is None:
            msec = self.config.default_timeout_ms

        with self._lock:
            self._write_log(Operation.TIMEOUT)
            self.hooks.run_before(Operation.TIMEOUT, msec)

            self._cancel_timer("replaced")
            handle = None
            if msec > 0:
                cell = []
                handle = self.scheduler.schedule(
                    msec / 1000.0,
                    lambda: self._expire(cell[0], commit, listener),
                )
                cell.append(handle)
                self._timer = handle
                action = "commit" if commit else "rollback"
                logger.debug(f"Timeout armed: {action} in {msec}ms")

            self.hooks.run_after(Operation.TIMEOUT, msec)
            return handle

    def cancel_timeout(self) -> bool:
        """
        Disarm the pending timeout without logging.

        Returns:
            True if a timeout was pending
        """
        with self._lock:
            return self._cancel_timer("cancelled")

    def _cancel_timer(self, reason: str) -> bool:
        timer, self._timer = self._timer, None
        if timer is None:
            return False
        cancelled = timer.cancel()
        if cancelled:
            logger.debug(f"Pending timeout {reason}")
        return cancelled

    def _expire(self, handle: TimerHandle, commit: bool, listener: Optional[TimeoutListener]) -> None:
        with self._lock:
            # A competing commit/rollback or a newer timeout already won
            if self._timer is not handle:
                logger.debug("Stale timeout ignored")
                return
            self._timer = None

            logger.info(f"Timeout expired, {'committing' if commit else 'rolling back'}")
            # Failures propagate to the scheduler that ran the callback
            if commit:
                self.commit()
            else:
                self.rollback()

        if listener is not None:
            listener(commit)
