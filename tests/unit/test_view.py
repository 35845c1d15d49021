"""
Unit tests for InterceptedView.

Tests merged reads, routed writes, enumeration order and consistency of
membership checks with the merged state.
"""

import threading

import pytest
from unittest.mock import Mock

from deltatx.core import InterceptedView
from deltatx.errors import InvalidFieldError
from deltatx.transactions import Transaction


@pytest.fixture
def txn(person, tx_kwargs):
    return Transaction.start(person, **tx_kwargs)


class TestViewReads:
    """Tests for reading through the view."""

    def test_reads_fall_back_to_record(self, txn):
        """Unmodified fields come from the record."""
        assert txn.view["name"] == "Marcus Aurelius"

    def test_reads_prefer_delta(self, txn, person):
        """Pending values shadow the record."""
        txn.view["name"] = "Mao Zedong"

        assert txn.view["name"] == "Mao Zedong"
        assert person["name"] == "Marcus Aurelius"

    def test_missing_field_raises_key_error(self, txn):
        """Unknown fields behave like a dict."""
        with pytest.raises(KeyError):
            txn.view["city"]
        assert txn.view.get("city", "none") == "none"

    def test_non_string_field_rejected(self, txn):
        """Field names must be strings."""
        with pytest.raises(InvalidFieldError):
            txn.view[1] = "x"

    def test_read_your_writes(self, txn):
        """Every write is immediately visible."""
        for value in (1893, "x", None, [1, 2], 121):
            txn.view["born"] = value
            assert txn.view["born"] == value


class TestViewWrites:
    """Tests for writes routed into the delta."""

    def test_write_goes_to_delta(self, txn, person):
        """Writes never touch the record directly."""
        txn.view["city"] = "Shaoshan"

        assert txn.delta.to_dict() == {"city": "Shaoshan"}
        assert "city" not in person

    def test_write_back_to_base_cancels(self, txn):
        """Writing the record value again removes the override."""
        txn.view["born"] = 1893
        txn.view["born"] = 121

        assert len(txn.delta) == 0

    def test_delete_hides_field(self, txn, person):
        """Deleting a record field hides it until commit."""
        del txn.view["born"]

        assert "born" not in txn.view
        assert list(txn.view) == ["name"]
        assert person["born"] == 121
        with pytest.raises(KeyError):
            txn.view["born"]

    def test_delete_missing_raises(self, txn):
        """Deleting an absent field raises KeyError."""
        with pytest.raises(KeyError):
            del txn.view["city"]

    def test_double_delete_raises(self, txn):
        """A field already pending removal cannot be deleted again."""
        del txn.view["born"]
        with pytest.raises(KeyError):
            del txn.view["born"]


class TestViewEnumeration:
    """Tests for keys, len and membership."""

    def test_record_keys_first_then_delta_keys(self, txn):
        """Record order is kept; delta-only keys follow in insertion order."""
        txn.view["zeta"] = 1
        txn.view["born"] = 1893
        txn.view["alpha"] = 2

        assert list(txn.view) == ["name", "born", "zeta", "alpha"]

    def test_no_duplicates(self, txn):
        """Overridden record keys appear once."""
        txn.view["name"] = "Mao Zedong"

        assert list(txn.view.keys()) == ["name", "born"]
        assert len(txn.view) == 2

    def test_membership_matches_merged_state(self, txn):
        """`in` agrees with iteration."""
        txn.view["city"] = "Shaoshan"

        assert "city" in txn.view
        assert "name" in txn.view
        assert "country" not in txn.view

    def test_to_dict_and_equality(self, txn):
        """to_dict() returns the merged mapping."""
        txn.view["city"] = "Shaoshan"

        merged = {"name": "Marcus Aurelius", "born": 121, "city": "Shaoshan"}
        assert txn.view.to_dict() == merged
        assert txn.view == merged

    def test_to_dict_does_not_fire_get_hooks(self, txn):
        """Bulk export bypasses get listeners."""
        listener = Mock()
        txn.before("get", listener)

        txn.view.to_dict()

        listener.assert_not_called()


class TestViewAccessors:
    """Tests for the view's bound objects."""

    def test_bound_objects(self, txn, person):
        """The view exposes its transaction, record and delta."""
        assert isinstance(txn.view, InterceptedView)
        assert txn.view.transaction is txn
        assert txn.view.record is person
        assert txn.view.delta is txn.delta

    def test_clone_from_view(self, txn):
        """Cloning through the view forks the transaction."""
        txn.view["born"] = 1893
        forked = txn.view.clone()

        assert forked["born"] == 1893
        assert forked.transaction is not txn


class TestViewLocking:
    """Tests that enumeration is serialised with lifecycle operations."""

    @pytest.mark.parametrize("read, expected", [
        (list, ["name", "born"]),
        (len, 2),
        (lambda view: "city" in view, False),
        (lambda view: view.to_dict(), {"name": "Marcus Aurelius", "born": 121}),
    ], ids=["iter", "len", "contains", "to_dict"])
    def test_reads_wait_for_transaction_lock(self, txn, read, expected):
        """A reader blocks while another thread holds the lock, then sees the result."""
        txn.view["city"] = "Shaoshan"
        result = {}
        done = threading.Event()

        def reader():
            result["value"] = read(txn.view)
            done.set()

        thread = threading.Thread(target=reader, daemon=True)
        with txn._lock:
            thread.start()
            assert not done.wait(0.1)
            txn.rollback()
        thread.join(2.0)

        assert done.is_set()
        assert result["value"] == expected

    def test_iteration_is_a_stable_snapshot(self, txn):
        """Keys are materialised up front; later changes do not affect the iterator."""
        txn.view["city"] = "Shaoshan"
        keys = iter(txn.view)

        txn.rollback()

        assert list(keys) == ["name", "born", "city"]
