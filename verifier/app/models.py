"""
Modul ini mendefinisikan struktur data yang digunakan oleh verifier:
- EventRecord: Event yang direkam dari stream sent atau received
- OrderedConfig: Sub-config ordered mode (knob opaque)
- ManagerConfig: Konfigurasi immutable satu StateManager
- TerminalState: Pasangan flag terminated dan metrics, diganti secara atomik
- IngestionResult: Hasil akhir satu ingestion loop
- Report: Snapshot immutable hasil verifikasi
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    field_serializer,
    field_validator,
)

# Partition key sentinel saat ordered mode mati atau atribut tidak ada
UNKNOWN_PARTITION_KEY: str = "unknown"

# Nama atribut yang dibaca untuk menentukan partition key
PARTITION_KEY_ATTRIBUTE: str = "partitionkey"

# Mapping partition key ke sequence ID event
IdsByPartitionKey = Mapping[str, tuple[str, ...]]

_ID_MAPPING_FIELDS: tuple[str, ...] = (
    "lost_events_by_partition_key",
    "duplicate_events_by_partition_key",
    "received_events_by_partition_key",
)


class EventRecord(BaseModel):
    """
    Event yang sudah di-deserialize oleh driver eksternal.

    Verifier hanya membaca identitas event (id) dan atribut partitionkey.
    Payload dan atribut lain tidak diinterpretasikan.

    Attributes:
        id: ID event, diasumsikan unik per instance event logis
        attributes: Atribut event (CloudEvents extensions), key string
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="ID unik event")
    attributes: dict[str, JsonValue] = Field(
        default_factory=dict[str, JsonValue],
        description="Atribut event, termasuk partitionkey jika ada",
    )


class OrderedConfig(BaseModel):
    """Knob tambahan ordered mode. Tidak dipakai oleh algoritma verifikasi."""

    model_config = ConfigDict(frozen=True)

    num_partition_keys: int = Field(default=10, ge=1)


class ManagerConfig(BaseModel):
    """
    Konfigurasi satu StateManager, tetap selama umur instance.

    Attributes:
        ordered: True jika urutan per partition key harus dicek
        ordered_config: Sub-config ordered mode (None jika unordered)
        invalid_partition_key_policy: Perlakuan loop untuk partitionkey non-string
        reterminate_policy: Perlakuan untuk mark_terminated kedua
    """

    model_config = ConfigDict(frozen=True)

    ordered: bool = False
    ordered_config: OrderedConfig | None = None
    invalid_partition_key_policy: Literal["skip", "unknown", "abort"] = "skip"
    reterminate_policy: Literal["reject", "overwrite"] = "reject"


class TerminalState(BaseModel):
    """
    Flag terminated dan metrics sebagai satu cell.

    Keduanya selalu dibaca dan diganti bersama sehingga report tidak pernah
    melihat terminated=True dengan metrics yang belum diset.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    terminated: bool = False
    metrics: Any = None


class IngestionResult(BaseModel):
    """Statistik satu ingestion loop setelah source habis."""

    model_config = ConfigDict(frozen=True)

    stream: Literal["sent", "received"]
    ingested: int = Field(..., description="Event yang berhasil dicatat")
    rejected: int = Field(
        ..., description="Event yang dibuang karena partitionkey invalid"
    )


class Report(BaseModel):
    """
    Report akhir verifikasi delivery.

    Semua mapping dikunci dengan partition key. Lost dihitung dengan semantik
    set (sent dikurangi received setelah deduplikasi), received adalah
    sequence mentah (sebelum deduplikasi).

    Invariant yang dijaga per partition key:
        len(received) = len(received unik) + len(duplicates)

    Report benar-benar immutable: field tidak bisa diganti, mapping dibungkus
    MappingProxyType (read-only) dan setiap sequence ID berupa tuple. Dengan
    begitu isi mapping tidak bisa menyimpang dari count-nya.
    """

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, validate_default=True
    )

    lost_events_by_partition_key: IdsByPartitionKey = Field(default_factory=dict)
    duplicate_events_by_partition_key: IdsByPartitionKey = Field(
        default_factory=dict
    )
    received_events_by_partition_key: IdsByPartitionKey = Field(
        default_factory=dict
    )
    lost_count: int = 0
    duplicate_count: int = 0
    received_count: int = 0
    metrics: Any = None
    terminated: bool = False

    @field_validator(*_ID_MAPPING_FIELDS, mode="after")
    @classmethod
    def freeze_id_mappings(cls, value: IdsByPartitionKey) -> IdsByPartitionKey:
        return MappingProxyType({key: tuple(ids) for key, ids in value.items()})

    @field_serializer(*_ID_MAPPING_FIELDS)
    def serialize_id_mappings(
        self, value: IdsByPartitionKey
    ) -> dict[str, list[str]]:
        return {key: list(ids) for key, ids in value.items()}

    @property
    def is_lossless(self) -> bool:
        return self.lost_count == 0

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_count > 0
