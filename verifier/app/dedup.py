"""
Modul dedup: Pemisahan kemunculan pertama dan duplikat dari sequence ID.

Dalam skenario at-least-once delivery, event yang sama bisa diterima
berkali-kali. Duplikat bukan error, melainkan kuantitas yang diukur.
"""

from collections.abc import Iterable


def remove_duplicates(ids: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Pisahkan sequence ID menjadi kemunculan pertama dan duplikat.

    Urutan relatif dipertahankan di kedua hasil. ID yang muncul N kali
    menyumbang 1 entry ke unique dan N-1 entry ke duplicates.

    Contoh:
        remove_duplicates(["a", "a", "b", "a"]) == (["a", "b"], ["a", "a"])

    Args:
        ids: Sequence ID event sesuai urutan diterima

    Returns:
        Tuple (unique, duplicates)
    """
    seen: set[str] = set()
    unique: list[str] = []
    duplicates: list[str] = []
    for event_id in ids:
        if event_id in seen:
            duplicates.append(event_id)
        else:
            seen.add(event_id)
            unique.append(event_id)
    return unique, duplicates
