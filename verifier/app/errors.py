"""Exception yang dilempar oleh verifier."""

from pydantic import JsonValue


class VerifierError(Exception):
    """Base exception untuk semua error verifier."""


class InvalidPartitionKeyError(VerifierError, TypeError):
    """
    Atribut partitionkey ada tetapi bukan string.

    Hanya dilempar saat ordered mode aktif. Insertion yang memicu error ini
    gagal seluruhnya: tidak ada ID yang dicatat di ledger.
    """

    def __init__(self, event_id: str, value: JsonValue) -> None:
        self.event_id: str = event_id
        self.value: JsonValue = value
        super().__init__(
            f"partitionkey event {event_id!r} harus string, "
            f"didapat {type(value).__name__}: {value!r}"
        )


class AlreadyTerminatedError(VerifierError):
    """mark_terminated dipanggil lagi dengan reterminate_policy=reject."""


class ChannelClosedError(VerifierError):
    """Event dikirim ke EventChannel yang sudah ditutup."""
