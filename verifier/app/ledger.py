"""
Modul ledger: State manager thread-safe untuk event sent dan received.

StateManager adalah satu-satunya pemilik ledger. Ledger berupa dua mapping
(sent dan received) dari partition key ke sequence ID event.

Disiplin akses:
- Semua mutasi dan pembacaan struktural memakai satu lock eksklusif
- Diff dan report bekerja di atas snapshot yang disalin di bawah lock,
  lalu dihitung di luar lock
- Flag terminated dan metrics adalah satu TerminalState immutable yang
  diganti secara atomik
- Pemanggil tidak pernah mendapat referensi ke list internal ledger
"""

import logging
import threading
from typing import Any, Literal

from pydantic import JsonValue

from . import report
from .errors import AlreadyTerminatedError, InvalidPartitionKeyError
from .models import (
    PARTITION_KEY_ATTRIBUTE,
    UNKNOWN_PARTITION_KEY,
    EventRecord,
    ManagerConfig,
    Report,
    TerminalState,
)
from .report import LedgerSnapshot

logger: logging.Logger = logging.getLogger(__name__)

Stream = Literal["sent", "received"]


def resolve_partition_key(event: EventRecord, ordered: bool) -> str:
    """
    Tentukan partition key sebuah event.

    Partisi hanya bermakna jika urutan dicek, jadi di unordered mode semua
    event masuk ke UNKNOWN_PARTITION_KEY apa pun atributnya. Di ordered mode
    atribut yang tidak ada juga jatuh ke sentinel.

    Raises:
        InvalidPartitionKeyError: ordered mode dan partitionkey bukan string
    """
    if not ordered:
        return UNKNOWN_PARTITION_KEY
    if PARTITION_KEY_ATTRIBUTE not in event.attributes:
        return UNKNOWN_PARTITION_KEY
    value: JsonValue = event.attributes[PARTITION_KEY_ATTRIBUTE]
    if not isinstance(value, str):
        raise InvalidPartitionKeyError(event.id, value)
    return value


class StateManager:
    """
    Pencatat event sent/received per partition key untuk satu sesi verifikasi.

    Lifecycle: active -> terminated, satu arah. Kedua state tetap menerima
    insertion dan query; driver yang bertanggung jawab menghentikan producer
    sebelum memanggil mark_terminated.

    Aman dipanggil dari beberapa thread maupun beberapa asyncio task, karena
    tidak ada operasi yang menahan lock melewati titik await.
    """

    def __init__(self, config: ManagerConfig | None = None) -> None:
        self._config: ManagerConfig = config or ManagerConfig()
        self._lock: threading.Lock = threading.Lock()
        self._sent: dict[str, list[str]] = {}
        self._received: dict[str, list[str]] = {}
        self._state: TerminalState = TerminalState()

    @property
    def config(self) -> ManagerConfig:
        return self._config

    @property
    def terminated(self) -> bool:
        with self._lock:
            return self._state.terminated

    def partition_key(self, event: EventRecord) -> str:
        return resolve_partition_key(event, self._config.ordered)

    def record_sent(self, event: EventRecord, partition_key: str | None = None) -> str:
        """
        Catat event yang dikirim ke system under test.

        Args:
            event: Event yang dikirim
            partition_key: Override partition key (dipakai loop untuk fallback
                ke sentinel); None berarti dihitung dari atribut event

        Returns:
            Partition key tempat ID event dicatat

        Raises:
            InvalidPartitionKeyError: partitionkey bukan string (ordered mode)
        """
        return self._record("sent", event, partition_key)

    def record_received(
        self, event: EventRecord, partition_key: str | None = None
    ) -> str:
        """Catat event yang diterima kembali dari system under test."""
        return self._record("received", event, partition_key)

    def _record(
        self, stream: Stream, event: EventRecord, partition_key: str | None
    ) -> str:
        # Key dihitung sebelum lock agar insertion gagal tanpa menyentuh ledger
        key: str = (
            partition_key if partition_key is not None else self.partition_key(event)
        )
        store: dict[str, list[str]] = (
            self._sent if stream == "sent" else self._received
        )
        with self._lock:
            store.setdefault(key, []).append(event.id)
        logger.debug(
            "Event dicatat: stream=%s, partitionkey=%s, id=%s", stream, key, event.id
        )
        return key

    def received_count(self) -> int:
        """Total ID di ledger received (termasuk duplikat) dari satu pembacaan."""
        with self._lock:
            return sum(len(ids) for ids in self._received.values())

    def snapshot(self) -> LedgerSnapshot:
        """Salin kedua ledger dan terminal state di bawah satu lock."""
        with self._lock:
            return LedgerSnapshot(
                sent={key: tuple(ids) for key, ids in self._sent.items()},
                received={key: tuple(ids) for key, ids in self._received.items()},
                ordered=self._config.ordered,
                state=self._state,
            )

    def diff(self) -> str:
        """Diff per partition key; string kosong berarti tidak ada perbedaan."""
        return report.diff(self.snapshot())

    def generate_report(self) -> Report:
        """Report live; tidak memutasi ledger dan boleh dipanggil berulang."""
        return report.generate_report(self.snapshot())

    def mark_terminated(self, metrics: Any = None) -> None:
        """
        Transisi satu arah ke state terminated dengan metrics final.

        Flag dan metrics diganti bersama sebagai satu TerminalState, jadi
        query yang berjalan bersamaan melihat state lama atau baru secara utuh.

        Raises:
            AlreadyTerminatedError: sudah terminated dan reterminate_policy=reject
        """
        with self._lock:
            if self._state.terminated and self._config.reterminate_policy == "reject":
                raise AlreadyTerminatedError(
                    "StateManager sudah terminated, metrics pertama dipertahankan"
                )
            overwrite: bool = self._state.terminated
            self._state = TerminalState(terminated=True, metrics=metrics)

        if overwrite:
            logger.warning("StateManager di-terminate ulang, metrics ditimpa")
        else:
            logger.info("StateManager terminated")
