"""
audit/schemas.py - Pydantic export models

Stable wire shape for log entries handed to an external persistence or
auditing collaborator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..events.hooks import LOGGABLE_OPERATIONS

_OPERATION_NAMES = frozenset(op.value for op in LOGGABLE_OPERATIONS)


class LogRecord(BaseModel):
    """Exported form of one audit log entry."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="Sequential entry id, from 0")
    time: str = Field(..., description="ISO-8601 timestamp")
    operation: str = Field(..., description="Lifecycle operation name")
    delta: Dict[str, Any] = Field(
        default_factory=dict, description="Pending state when the operation ran"
    )

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        datetime.fromisoformat(value)
        return value

    @field_validator("operation")
    @classmethod
    def _check_operation(cls, value: str) -> str:
        if value not in _OPERATION_NAMES:
            raise ValueError(f"unknown operation {value!r}")
        return value


class AuditTrail(BaseModel):
    """A transaction's complete exported log."""

    entries: List[LogRecord] = Field(default_factory=list)

    @property
    def operations(self) -> List[str]:
        return [e.operation for e in self.entries]
