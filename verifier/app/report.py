"""
Modul report: Diff dan report akhir dari snapshot ledger.

Semua fungsi di sini murni: input adalah LedgerSnapshot (salinan yang sudah
settle), sehingga bisa berjalan di luar lock tanpa mengganggu ingestion.

Perbandingan per partition key:
- Ordered mode: sequence sent harus sama persis dengan received unik
- Unordered mode: kedua sisi diurutkan dulu, jadi yang dicek multiset
"""

import difflib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .dedup import remove_duplicates
from .models import Report, TerminalState

DIFF_HEADER: str = "Diff by partition key\n"


@dataclass(frozen=True)
class LedgerSnapshot:
    """Salinan konsisten kedua ledger dan terminal state dari satu pembacaan."""

    sent: Mapping[str, tuple[str, ...]]
    received: Mapping[str, tuple[str, ...]]
    ordered: bool
    state: TerminalState


def _unique_received(
    snapshot: LedgerSnapshot, key: str
) -> tuple[list[str], list[str]]:
    return remove_duplicates(snapshot.received.get(key, ()))


def diff_sequences(sent: Sequence[str], received: Sequence[str]) -> str:
    """
    Diff baris-per-ID antara sent dan received, string kosong jika sama.

    Baris "-" ada di sent tapi tidak di received (hilang atau tertukar urutan),
    baris "+" ada di received tapi tidak di sent.
    """
    if list(sent) == list(received):
        return ""
    lines: list[str] = list(
        difflib.unified_diff(
            list(sent), list(received), fromfile="sent", tofile="received", lineterm=""
        )
    )
    return "\n".join(lines) + "\n"


def diff(snapshot: LedgerSnapshot) -> str:
    """
    Diff human-readable per partition key antara sent dan received.

    Iterasi digerakkan oleh key di ledger sent. Partition key yang hanya ada
    di received tidak muncul di sini (tercatat di received count report).

    Returns:
        String kosong jika tidak ada perbedaan di partition key mana pun,
        selain itu diff lengkap semua partition key
    """
    has_diff: bool = False
    full_diff: str = DIFF_HEADER

    for key in sorted(snapshot.sent):
        sent: list[str] = list(snapshot.sent[key])
        received, _ = _unique_received(snapshot, key)

        if not snapshot.ordered:
            sent.sort()
            received.sort()

        body: str = diff_sequences(sent, received)
        if body:
            has_diff = True
        full_diff += f"partitionkey: '{key}' (-sent, +received)\n{body}"

    if not has_diff:
        return ""
    return full_diff


def generate_report(snapshot: LedgerSnapshot) -> Report:
    """
    Susun report akhir dari snapshot.

    - Lost: set sent dikurangi set received unik, per partition key sent
    - Duplicates: kemunculan berulang di sequence received
    - Received: sequence received mentah, termasuk partition key yang tidak
      pernah dikirim, sehingga received_count sama dengan total ledger received

    Catatan: iterasi tidak hanya digerakkan oleh key sent. Partition key yang
    hanya ada di received sengaja ikut dihitung di received_count dan
    duplicate_count (report yang hanya mengiterasi key sent akan melewatkan
    event liar ini), tetapi tidak pernah muncul di lost maupun di diff().

    Di unordered mode duplicates diurutkan agar output reproducible; lost
    selalu diurutkan karena semantiknya set.
    """
    lost_by_key: dict[str, tuple[str, ...]] = {}
    duplicates_by_key: dict[str, tuple[str, ...]] = {}
    received_by_key: dict[str, tuple[str, ...]] = {}
    lost_count: int = 0
    duplicate_count: int = 0
    received_count: int = 0

    for key in sorted(snapshot.sent):
        received, duplicates = _unique_received(snapshot, key)
        if not snapshot.ordered:
            duplicates.sort()

        lost: list[str] = sorted(set(snapshot.sent[key]).difference(received))
        lost_by_key[key] = tuple(lost)
        lost_count += len(lost)
        duplicates_by_key[key] = tuple(duplicates)
        duplicate_count += len(duplicates)

    for key in sorted(snapshot.received):
        raw: tuple[str, ...] = snapshot.received[key]
        received_by_key[key] = raw
        received_count += len(raw)
        if key not in snapshot.sent:
            _, duplicates = remove_duplicates(raw)
            if not snapshot.ordered:
                duplicates.sort()
            duplicates_by_key[key] = tuple(duplicates)
            duplicate_count += len(duplicates)

    for key in snapshot.sent:
        received_by_key.setdefault(key, ())

    return Report(
        lost_events_by_partition_key=lost_by_key,
        duplicate_events_by_partition_key=duplicates_by_key,
        received_events_by_partition_key=received_by_key,
        lost_count=lost_count,
        duplicate_count=duplicate_count,
        received_count=received_count,
        metrics=snapshot.state.metrics,
        terminated=snapshot.state.terminated,
    )
