"""Tests for the active -> terminated transition."""

import pytest

from conftest import create_test_event
from verifier.app.errors import AlreadyTerminatedError
from verifier.app.ledger import StateManager
from verifier.app.models import ManagerConfig


def test_initially_active(manager: StateManager) -> None:
    """Test that a fresh manager is not terminated and has no metrics."""
    report = manager.generate_report()

    assert manager.terminated is False
    assert report.terminated is False
    assert report.metrics is None


def test_termination_snapshot(manager: StateManager) -> None:
    """Test that every report after termination carries the final metrics."""
    metrics = {"accepted": 3, "failed": 0}
    _ = manager.record_sent(create_test_event("e1"))

    manager.mark_terminated(metrics)

    for _ in range(3):
        report = manager.generate_report()
        assert report.terminated is True
        assert report.metrics == metrics


def test_insertions_after_termination_still_recorded(manager: StateManager) -> None:
    """Test that termination does not block ingestion or change metrics."""
    metrics = {"accepted": 1}
    manager.mark_terminated(metrics)

    _ = manager.record_sent(create_test_event("late"))
    _ = manager.record_received(create_test_event("late"))

    report = manager.generate_report()
    assert report.terminated is True
    assert report.metrics == metrics
    assert report.received_count == 1
    assert manager.diff() == ""


def test_metrics_passed_through_untouched(manager: StateManager) -> None:
    """Test that opaque metrics objects are not copied or validated."""

    class Metrics:
        pass

    metrics = Metrics()
    manager.mark_terminated(metrics)

    assert manager.generate_report().metrics is metrics


def test_second_termination_rejected_by_default(manager: StateManager) -> None:
    """Test that the default policy keeps the first metrics."""
    manager.mark_terminated({"run": 1})

    with pytest.raises(AlreadyTerminatedError):
        manager.mark_terminated({"run": 2})

    report = manager.generate_report()
    assert report.terminated is True
    assert report.metrics == {"run": 1}


def test_second_termination_overwrites_when_configured() -> None:
    """Test last-write-wins when the overwrite policy is chosen."""
    manager = StateManager(ManagerConfig(reterminate_policy="overwrite"))
    manager.mark_terminated({"run": 1})

    manager.mark_terminated({"run": 2})

    report = manager.generate_report()
    assert report.terminated is True
    assert report.metrics == {"run": 2}


def test_terminate_without_metrics(manager: StateManager) -> None:
    """Test that metrics default to None."""
    manager.mark_terminated()

    report = manager.generate_report()
    assert report.terminated is True
    assert report.metrics is None
