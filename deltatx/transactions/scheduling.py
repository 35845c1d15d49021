"""
transactions/scheduling.py - Cancellable deferred actions

Timer facility behind Transaction.timeout(). schedule() always returns a
handle whose cancel() prevents the callback from running if it has not
started yet.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import heapq
import itertools
import logging
import threading

logger = logging.getLogger("deltatx.scheduling")


class TimerHandle(ABC):
    """Handle to one scheduled callback."""

    @abstractmethod
    def cancel(self) -> bool:
        """Cancel the callback. Returns True if it had not run yet."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the callback is still due to run."""
        pass


class Scheduler(ABC):
    """Schedule-and-cancel primitive."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        pass


# =============================================================================
# THREAD-BASED SCHEDULER
# =============================================================================

class ThreadTimerHandle(TimerHandle):
    """Handle wrapping a threading.Timer."""

    def __init__(self, delay: float, callback: Callable[[], None], daemon: bool = True):
        self._callback = callback
        self._lock = threading.Lock()
        self._state = "pending"
        self._timer = threading.Timer(delay, self._fire)
        self._timer.daemon = daemon

    def start(self) -> None:
        self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._state != "pending":
                return
            self._state = "fired"
        self._callback()

    def cancel(self) -> bool:
        with self._lock:
            if self._state != "pending":
                return False
            self._state = "cancelled"
        self._timer.cancel()
        return True

    @property
    def active(self) -> bool:
        return self._state == "pending"

    @property
    def fired(self) -> bool:
        return self._state == "fired"

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the timer thread to finish."""
        self._timer.join(timeout)


class ThreadingScheduler(Scheduler):
    """Runs each callback on its own threading.Timer thread."""

    def __init__(self, daemon: bool = True):
        self.daemon = daemon

    def schedule(self, delay: float, callback: Callable[[], None]) -> ThreadTimerHandle:
        handle = ThreadTimerHandle(max(delay, 0.0), callback, daemon=self.daemon)
        handle.start()
        logger.debug(f"Scheduled callback in {delay:.3f}s")
        return handle


# =============================================================================
# MANUAL SCHEDULER
# =============================================================================

class ManualTimerHandle(TimerHandle):
    """Handle for a ManualScheduler entry."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> bool:
        if self.cancelled or self.fired:
            return False
        self.cancelled = True
        return True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class ManualScheduler(Scheduler):
    """
    Scheduler driven by an explicit virtual clock.

    Nothing runs until advance() moves time past a callback's due time.
    Callbacks run on the calling thread, in due order.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[tuple] = []
        self._counter = itertools.count()

    def schedule(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every callback that became due.

        Returns:
            Number of callbacks run
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.active:
                handle.fired = True
                handle.callback()
                ran += 1
        self.now = target
        return ran

    @property
    def pending(self) -> int:
        """Number of callbacks still due to run."""
        return sum(1 for _, _, h in self._queue if h.active)
