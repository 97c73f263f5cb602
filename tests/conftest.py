"""Pytest configuration and fixtures."""

import uuid
from collections.abc import AsyncIterator, Iterable
from typing import Any

import pytest

from verifier.app.ledger import StateManager
from verifier.app.models import EventRecord, ManagerConfig, OrderedConfig


@pytest.fixture
def manager() -> StateManager:
    """Unordered StateManager with default policies."""
    return StateManager(ManagerConfig())


@pytest.fixture
def ordered_manager() -> StateManager:
    """Ordered StateManager with default policies."""
    return StateManager(ManagerConfig(ordered=True, ordered_config=OrderedConfig()))


def create_test_event(
    event_id: str | None = None,
    partition_key: Any = None,
    **attributes: Any,
) -> EventRecord:
    """Create a test event, with a partitionkey attribute when one is given."""
    if partition_key is not None:
        attributes["partitionkey"] = partition_key
    return EventRecord(id=event_id or str(uuid.uuid4()), attributes=attributes)


def create_test_events(
    event_ids: Iterable[str], partition_key: Any = None
) -> list[EventRecord]:
    """Create test events sharing one partition key."""
    return [create_test_event(event_id, partition_key) for event_id in event_ids]


async def stream_of(events: Iterable[EventRecord]) -> AsyncIterator[EventRecord]:
    """Async source that yields the given events then ends."""
    for event in events:
        yield event
