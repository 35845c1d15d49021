"""
errors/ - Error Taxonomy

Structured exceptions raised by the transaction layer.
"""

from .taxonomy import (
    ErrorCategory,
    TransactionError,
    InvalidFieldError,
    UnknownOperationError,
    RollbackTargetNotFoundError,
)

__all__ = [
    "ErrorCategory",
    "TransactionError",
    "InvalidFieldError",
    "UnknownOperationError",
    "RollbackTargetNotFoundError",
]
