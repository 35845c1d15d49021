"""
transactions/ - Transactional overlay

Single-record and fan-out transactions with audit logging, lifecycle hooks
and cancellable timeouts.
"""

from .scheduling import (
    TimerHandle,
    Scheduler,
    ThreadingScheduler,
    ManualScheduler,
)

from .base import (
    TransactionBase,
    TimeoutListener,
)

from .transaction import Transaction

from .dataset import DatasetTransaction

from .api import (
    start,
    transactional,
)

__all__ = [
    # Scheduling
    "TimerHandle",
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
    # Transactions
    "TransactionBase",
    "TimeoutListener",
    "Transaction",
    "DatasetTransaction",
    # Entry points
    "start",
    "transactional",
]
