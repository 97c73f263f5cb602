"""
Modul ingestion: Loop konsumsi stream sent dan received ke StateManager.

Dua loop independen berjalan bersamaan sebagai asyncio task:
- Loop sent mencatat event yang dikirim driver ke system under test
- Loop received mencatat event yang keluar dari system under test

Setiap loop hanya suspend saat menunggu event berikutnya dari source.
Loop berhenti ketika source habis (channel ditutup), lalu task selesai
dengan IngestionResult sebagai sinyal completion.
"""

import asyncio
import logging
from collections.abc import AsyncIterable
from typing import Final, cast

from .errors import ChannelClosedError, InvalidPartitionKeyError
from .ledger import StateManager, Stream
from .models import UNKNOWN_PARTITION_KEY, EventRecord, IngestionResult

logger: logging.Logger = logging.getLogger(__name__)

_CLOSED: Final[object] = object()


class EventChannel:
    """
    Source event berbasis asyncio.Queue yang bisa ditutup.

    Driver mengirim event dengan send() dan menutup channel dengan close().
    Iterasi async berakhir setelah semua event sebelum close() dikonsumsi.

    Penggunaan:
        channel = EventChannel()
        task = read_sent(manager, channel)
        await channel.send(event)
        channel.close()
        result = await task
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[EventRecord | object] = asyncio.Queue()
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: EventRecord) -> None:
        if self._closed:
            raise ChannelClosedError(
                f"Channel sudah ditutup, event {event.id!r} ditolak"
            )
        await self._queue.put(event)

    def close(self) -> None:
        """Tutup channel. Pemanggilan berikutnya tidak berpengaruh."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> EventRecord:
        item: EventRecord | object = await self._queue.get()
        if item is _CLOSED:
            # Marker dikembalikan agar iterator lain juga berhenti
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return cast(EventRecord, item)


async def consume(
    manager: StateManager, source: AsyncIterable[EventRecord], stream: Stream
) -> IngestionResult:
    """
    Kuras source ke ledger sampai source habis.

    Event dengan partitionkey invalid diperlakukan sesuai
    invalid_partition_key_policy di konfigurasi manager:
    - skip: event dibuang, dicatat sebagai rejected, loop lanjut
    - unknown: event dicatat di partition key sentinel
    - abort: exception diteruskan, task selesai dengan error

    Args:
        manager: StateManager tujuan
        source: Async iterable event (misal EventChannel)
        stream: "sent" atau "received"

    Returns:
        IngestionResult dengan jumlah event yang dicatat dan ditolak
    """
    policy: str = manager.config.invalid_partition_key_policy
    ingested: int = 0
    rejected: int = 0

    logger.info("Ingestion loop %s dimulai", stream)

    async for event in source:
        try:
            _ = _record(manager, stream, event, None)
        except InvalidPartitionKeyError as e:
            if policy == "abort":
                logger.error("Ingestion loop %s dihentikan: %s", stream, e)
                raise
            if policy == "unknown":
                logger.warning(
                    "Event %s dicatat di partitionkey '%s': %s",
                    event.id,
                    UNKNOWN_PARTITION_KEY,
                    e,
                )
                _ = _record(manager, stream, event, UNKNOWN_PARTITION_KEY)
            else:
                logger.error(
                    "Event %s dibuang dari stream %s: %s", event.id, stream, e
                )
                rejected += 1
                continue
        ingested += 1

    logger.info(
        "Ingestion loop %s selesai: dicatat=%d, ditolak=%d",
        stream,
        ingested,
        rejected,
    )
    return IngestionResult(stream=stream, ingested=ingested, rejected=rejected)


def _record(
    manager: StateManager,
    stream: Stream,
    event: EventRecord,
    partition_key: str | None,
) -> str:
    if stream == "sent":
        return manager.record_sent(event, partition_key)
    return manager.record_received(event, partition_key)


def read_sent(
    manager: StateManager, source: AsyncIterable[EventRecord]
) -> asyncio.Task[IngestionResult]:
    """Mulai loop sent di background. Harus dipanggil di dalam event loop."""
    return asyncio.create_task(consume(manager, source, "sent"), name="ingest-sent")


def read_received(
    manager: StateManager, source: AsyncIterable[EventRecord]
) -> asyncio.Task[IngestionResult]:
    """Mulai loop received di background. Harus dipanggil di dalam event loop."""
    return asyncio.create_task(
        consume(manager, source, "received"), name="ingest-received"
    )
