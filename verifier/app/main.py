"""Verifier entry point: logging setup, StateManager factory and session helper."""

import asyncio
import logging
from collections.abc import AsyncIterable
from typing import Any, cast

from .config import Settings, settings
from .ingestion import read_received, read_sent
from .ledger import StateManager
from .models import EventRecord, IngestionResult, ManagerConfig, Report

logger: logging.Logger = logging.getLogger(__name__)


def configure_logging(config: Settings = settings) -> None:
    """Configure root logging from settings.log_level."""
    log_level: int = cast(int, getattr(logging, config.log_level.upper()))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_state_manager(config: Settings = settings) -> StateManager:
    """Create a StateManager with configuration derived from settings."""
    manager_config: ManagerConfig = config.manager_config()
    logger.info(
        "StateManager dibuat: ordered=%s, invalid_partition_key_policy=%s",
        manager_config.ordered,
        manager_config.invalid_partition_key_policy,
    )
    return StateManager(manager_config)


async def verify(
    manager: StateManager,
    sent: AsyncIterable[EventRecord],
    received: AsyncIterable[EventRecord],
    metrics: Any = None,
) -> tuple[Report, str]:
    """
    Run one verification session to completion.

    Both ingestion loops run concurrently until their sources are exhausted,
    then the manager is marked terminated with the given metrics.

    If either loop fails (e.g. invalid_partition_key_policy="abort"), the other
    loop is cancelled and awaited before the error propagates, and the manager
    stays active so the caller can still inspect a partial report.

    Returns:
        Tuple (report, diff); an empty diff means no discrepancy

    Raises:
        InvalidPartitionKeyError: a loop aborted on a malformed partition key
    """
    tasks: list[asyncio.Task[IngestionResult]] = [
        read_sent(manager, sent),
        read_received(manager, received),
    ]
    try:
        results: list[IngestionResult] = await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                logger.warning("Ingestion loop %s dibatalkan", task.get_name())
                _ = task.cancel()
        # Every loop is collected, so no task outlives the session
        _ = await asyncio.gather(*tasks, return_exceptions=True)

    for result in results:
        logger.info(
            "Stream %s: dicatat=%d, ditolak=%d",
            result.stream,
            result.ingested,
            result.rejected,
        )

    manager.mark_terminated(metrics)
    report: Report = manager.generate_report()
    diff: str = manager.diff()

    logger.info(
        "Verifikasi selesai: lost=%d, duplikat=%d, diterima=%d",
        report.lost_count,
        report.duplicate_count,
        report.received_count,
    )
    return report, diff
