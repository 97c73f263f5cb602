"""Tests for partition key resolution and ledger bookkeeping."""

import pytest

from conftest import create_test_event, create_test_events
from verifier.app.errors import InvalidPartitionKeyError
from verifier.app.ledger import StateManager, resolve_partition_key
from verifier.app.models import UNKNOWN_PARTITION_KEY


def test_unordered_mode_always_uses_sentinel() -> None:
    """Test that partition attributes are ignored when ordering is off."""
    with_key = create_test_event("e1", partition_key="p1")
    without_key = create_test_event("e2")

    assert resolve_partition_key(with_key, ordered=False) == UNKNOWN_PARTITION_KEY
    assert resolve_partition_key(without_key, ordered=False) == UNKNOWN_PARTITION_KEY


def test_unordered_mode_ignores_malformed_attribute() -> None:
    """Test that a non-string partitionkey is not an error when unordered."""
    event = create_test_event("e1", partition_key=42)

    assert resolve_partition_key(event, ordered=False) == UNKNOWN_PARTITION_KEY


def test_ordered_mode_uses_attribute() -> None:
    """Test that ordered mode reads the partitionkey attribute."""
    event = create_test_event("e1", partition_key="p1")

    assert resolve_partition_key(event, ordered=True) == "p1"


def test_ordered_mode_missing_attribute_falls_back() -> None:
    """Test that a missing partitionkey falls back to the sentinel."""
    event = create_test_event("e1", other="value")

    assert resolve_partition_key(event, ordered=True) == UNKNOWN_PARTITION_KEY


@pytest.mark.parametrize("value", [42, 1.5, True, ["p1"], {"key": "p1"}])
def test_ordered_mode_malformed_attribute_raises(value: object) -> None:
    """Test that a non-string partitionkey raises a typed error."""
    event = create_test_event("e1", partition_key=value)

    with pytest.raises(InvalidPartitionKeyError) as exc_info:
        _ = resolve_partition_key(event, ordered=True)

    assert exc_info.value.event_id == "e1"
    assert exc_info.value.value == value
    assert isinstance(exc_info.value, TypeError)


def test_unknown_partition_fallback(manager: StateManager) -> None:
    """Test that differing or absent partition keys share one partition."""
    _ = manager.record_sent(create_test_event("e1", partition_key="p1"))
    _ = manager.record_sent(create_test_event("e2", partition_key="p2"))
    _ = manager.record_sent(create_test_event("e3"))

    snapshot = manager.snapshot()
    assert list(snapshot.sent) == [UNKNOWN_PARTITION_KEY]
    assert snapshot.sent[UNKNOWN_PARTITION_KEY] == ("e1", "e2", "e3")


def test_record_returns_partition_key(ordered_manager: StateManager) -> None:
    """Test that record_* reports the partition the ID landed in."""
    assert ordered_manager.record_sent(create_test_event("e1", "p1")) == "p1"
    assert ordered_manager.record_received(create_test_event("e1")) == (
        UNKNOWN_PARTITION_KEY
    )


def test_partition_key_override(ordered_manager: StateManager) -> None:
    """Test that an explicit partition key bypasses attribute resolution."""
    event = create_test_event("e1", partition_key=42)

    key = ordered_manager.record_received(event, UNKNOWN_PARTITION_KEY)

    assert key == UNKNOWN_PARTITION_KEY
    assert ordered_manager.snapshot().received == {UNKNOWN_PARTITION_KEY: ("e1",)}


def test_failed_insertion_records_nothing(ordered_manager: StateManager) -> None:
    """Test that a malformed partition key leaves the ledger untouched."""
    with pytest.raises(InvalidPartitionKeyError):
        _ = ordered_manager.record_received(create_test_event("e1", partition_key=7))

    assert ordered_manager.received_count() == 0
    assert ordered_manager.snapshot().received == {}


def test_insertion_order_preserved_per_partition(
    ordered_manager: StateManager,
) -> None:
    """Test that IDs keep their insertion order within each partition."""
    for event in create_test_events(["e3", "e1", "e2"], "p1"):
        _ = ordered_manager.record_sent(event)
    for event in create_test_events(["x2", "x1"], "p2"):
        _ = ordered_manager.record_sent(event)

    snapshot = ordered_manager.snapshot()
    assert snapshot.sent == {"p1": ("e3", "e1", "e2"), "p2": ("x2", "x1")}


def test_received_count_includes_duplicates(ordered_manager: StateManager) -> None:
    """Test that received_count sums raw lengths over all partitions."""
    for event in create_test_events(["e1", "e1", "e2"], "p1"):
        _ = ordered_manager.record_received(event)
    _ = ordered_manager.record_received(create_test_event("e9", "p2"))

    assert ordered_manager.received_count() == 4


def test_received_count_empty(manager: StateManager) -> None:
    """Test that an empty ledger counts zero."""
    assert manager.received_count() == 0


def test_sent_does_not_count_as_received(manager: StateManager) -> None:
    """Test that sent and received ledgers are kept apart."""
    _ = manager.record_sent(create_test_event("e1"))

    assert manager.received_count() == 0
    assert manager.snapshot().received == {}


def test_snapshot_is_a_copy(manager: StateManager) -> None:
    """Test that later insertions do not leak into an earlier snapshot."""
    _ = manager.record_sent(create_test_event("e1"))
    snapshot = manager.snapshot()

    _ = manager.record_sent(create_test_event("e2"))

    assert snapshot.sent[UNKNOWN_PARTITION_KEY] == ("e1",)
    assert manager.snapshot().sent[UNKNOWN_PARTITION_KEY] == ("e1", "e2")


def test_snapshot_carries_mode(
    manager: StateManager, ordered_manager: StateManager
) -> None:
    """Test that the snapshot reflects the manager's ordered flag."""
    assert manager.snapshot().ordered is False
    assert ordered_manager.snapshot().ordered is True
