"""
errors/taxonomy.py - Transaction error taxonomy

Structured error types raised by views, hooks and transactions.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
from enum import Enum


class ErrorCategory(Enum):
    """Categories of transaction errors."""
    FIELD = "field"            # Bad field access on a view
    HOOK = "hook"              # Hook registration problems
    ROLLBACK = "rollback"      # Point-in-time rollback failures


# =============================================================================
# BASE ERROR CLASS
# =============================================================================

class TransactionError(Exception):
    """
    Base class for transaction errors.

    Carries:
    - Error code for programmatic handling
    - Human-readable message
    - Detailed context for debugging
    """

    code: str = "TX_000"
    category: ErrorCategory = ErrorCategory.FIELD

    def __init__(
        self,
        message: str = "",
        *,
        details: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        self.message = message or self.__class__.__doc__ or "Transaction error"
        self.details = details or {}
        self.details.update(kwargs)

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


# =============================================================================
# SPECIFIC ERROR TYPES
# =============================================================================

class InvalidFieldError(TransactionError, TypeError):
    """Field names on a view must be strings."""

    code = "TX_001"
    category = ErrorCategory.FIELD

    def __init__(self, field: Any):
        super().__init__(
            message=f"Field name must be a string, got {type(field).__name__}: {field!r}",
            field=repr(field),
        )
        self.field = field


class UnknownOperationError(TransactionError, ValueError):
    """Hook registered for an operation that does not exist."""

    code = "TX_002"
    category = ErrorCategory.HOOK

    def __init__(self, operation: Any, known: Iterable[str] = ()):
        known = sorted(known)
        message = f"Unknown operation {operation!r}"
        if known:
            message += f"; expected one of: {', '.join(known)}"

        super().__init__(
            message=message,
            operation=str(operation),
            known=known,
        )
        self.operation = operation


class RollbackTargetNotFoundError(TransactionError, LookupError):
    """No audit log entry exists with the requested id."""

    code = "TX_003"
    category = ErrorCategory.ROLLBACK

    def __init__(self, entry_id: int, log_size: int = 0):
        super().__init__(
            message=f"No log entry with id {entry_id} (log holds {log_size} entries)",
            entry_id=entry_id,
            log_size=log_size,
        )
        self.entry_id = entry_id
