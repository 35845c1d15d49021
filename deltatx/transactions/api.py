"""
transactions/api.py - Entry points

start() picks the transaction type from the shape of the data;
transactional() wraps a block in commit-on-success / rollback-on-error.
"""

from __future__ import annotations
from collections.abc import MutableMapping
from contextlib import contextmanager
from typing import Any, Iterator, Sequence, Union

from .dataset import DatasetTransaction
from .transaction import Transaction

AnyTransaction = Union[Transaction, DatasetTransaction]


def start(data: Union[MutableMapping, Sequence[MutableMapping]], **kwargs: Any) -> AnyTransaction:
    """
    Begin a transaction over a record or a sequence of records.

    Args:
        data: A mutable mapping, or a sequence of them for fan-out
        **kwargs: config, scheduler, clock

    Returns:
        Transaction for a mapping, DatasetTransaction for a sequence
    """
    if isinstance(data, MutableMapping):
        return Transaction.start(data, **kwargs)
    return DatasetTransaction.start(data, **kwargs)


@contextmanager
def transactional(data: Union[MutableMapping, Sequence[MutableMapping]], **kwargs: Any) -> Iterator[AnyTransaction]:
    """
    Context manager for transactions.

    Usage:
        with transactional(record) as txn:
            txn.view["city"] = "Shaoshan"
    """
    txn = start(data, **kwargs)
    try:
        yield txn
    except Exception:
        txn.rollback()
        raise
    txn.commit()
