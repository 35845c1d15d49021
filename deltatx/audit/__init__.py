"""
audit/ - Lifecycle audit log

Append-only log of transaction operations and its export schema.
"""

from .log import (
    Clock,
    LogEntry,
    AuditLog,
    utc_now,
)

from .schemas import (
    LogRecord,
    AuditTrail,
)

__all__ = [
    # Log
    "Clock",
    "LogEntry",
    "AuditLog",
    "utc_now",
    # Schemas
    "LogRecord",
    "AuditTrail",
]
