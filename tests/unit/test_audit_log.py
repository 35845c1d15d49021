"""
Unit tests for AuditLog and its export schema.
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from deltatx.audit import AuditLog, AuditTrail, LogEntry, LogRecord
from deltatx.core import DELETED
from deltatx.events import Operation


class TestAppend:
    """Tests for appending entries."""

    def test_ids_are_sequential_from_zero(self, clock):
        """Ids increase by one regardless of operation."""
        log = AuditLog(clock)
        ops = [Operation.STARTED, Operation.SET, Operation.COMMIT, Operation.TIMEOUT]
        entries = [log.append(op, {}) for op in ops]

        assert [e.id for e in entries] == [0, 1, 2, 3]
        assert log.operations() == ["started", "set", "commit", "timeout"]

    def test_timestamp_from_clock(self, clock):
        """Entries are stamped with the injected clock."""
        log = AuditLog(clock)
        entry = log.append("started", {})

        assert entry.timestamp == datetime(2018, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert entry.time == "2018-01-01T12:00:00+00:00"

    def test_delta_is_copied(self):
        """Later mutation of the source does not reach the entry."""
        log = AuditLog()
        delta = {"tags": ["a"]}
        entry = log.append("commit", delta)
        delta["tags"].append("b")
        delta["city"] = "Shaoshan"

        assert entry.delta == {"tags": ["a"]}

    def test_get_is_not_loggable(self):
        """Read operations are hookable but never logged."""
        log = AuditLog()
        with pytest.raises(ValueError):
            log.append(Operation.GET, {})

    def test_entries_are_immutable(self):
        """Neither the attributes nor the recorded state can be changed."""
        entry = AuditLog().append("commit", {"0": {"n": 1}, "tags": ["a"]})
        with pytest.raises(AttributeError):
            entry.id = 5
        with pytest.raises(AttributeError):
            entry.delta = {}

        entry.delta["0"]["n"] = 999
        entry.delta["tags"].append("b")
        del entry.delta["0"]

        assert entry.delta == {"0": {"n": 1}, "tags": ["a"]}
        assert entry.to_dict()["delta"] == {"0": {"n": 1}, "tags": ["a"]}


class TestLookup:
    """Tests for lookup and iteration."""

    def test_find_by_id(self):
        log = AuditLog()
        log.append("started", {})
        commit = log.append("commit", {"born": 1893})

        assert log.find_by_id(1) is commit
        assert log.find_by_id(2) is None
        assert log.find_by_id(-1) is None
        assert log.find_by_id("1") is None

    def test_last_and_len(self):
        log = AuditLog()
        assert log.last is None

        log.append("started", {})
        rollback = log.append("rollback", {})

        assert log.last is rollback
        assert len(log) == 2
        assert [e.id for e in log] == [0, 1]


class TestExport:
    """Tests for the export shape."""

    def test_to_dict_shape(self, clock):
        """Exported entries use the stable id/time/operation/delta keys."""
        log = AuditLog(clock)
        log.append("commit", {"born": 1893})

        assert log.to_list() == [{
            "id": 0,
            "time": "2018-01-01T12:00:00+00:00",
            "operation": "commit",
            "delta": {"born": 1893},
        }]

    def test_tombstones_export_as_none(self):
        """Pending deletions become None in the export."""
        entry = AuditLog().append("commit", {"city": DELETED})

        assert entry.to_dict()["delta"] == {"city": None}
        assert entry.delta["city"] is DELETED

    def test_to_record(self):
        """Entries convert into validated LogRecord models."""
        entry = AuditLog().append("rollback", {"0": {"name": "x"}})
        record = entry.to_record()

        assert isinstance(record, LogRecord)
        assert record.id == 0
        assert record.operation == "rollback"
        assert record.delta == {"0": {"name": "x"}}

    def test_to_trail(self):
        log = AuditLog()
        log.append("started", {})
        log.append("commit", {})

        trail = log.to_trail()

        assert isinstance(trail, AuditTrail)
        assert trail.operations == ["started", "commit"]

    def test_record_rejects_bad_operation(self):
        with pytest.raises(ValidationError):
            LogRecord(id=0, time="2018-01-01T12:00:00", operation="get", delta={})

    def test_record_rejects_bad_time(self):
        with pytest.raises(ValidationError):
            LogRecord(id=0, time="yesterday", operation="commit", delta={})

    def test_record_rejects_negative_id(self):
        with pytest.raises(ValidationError):
            LogRecord(id=-1, time="2018-01-01T12:00:00", operation="commit")

    def test_log_entry_direct_construction(self):
        """LogEntry can be built directly with a default timestamp."""
        entry = LogEntry(id=3, operation=Operation.REVOKE)

        assert entry.delta == {}
        assert entry.timestamp.tzinfo is not None
