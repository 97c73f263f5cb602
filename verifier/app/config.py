"""
Modul konfigurasi untuk verifier.

Konfigurasi diambil dari environment variables dengan fallback ke default values.

Environment variables yang didukung:
- LOG_LEVEL: Level logging (DEBUG, INFO, WARNING, ERROR)
- ORDERED: Sub-config ordered mode dalam format JSON (contoh: '{}')
- ORDERED__NUM_PARTITION_KEYS: Knob ordered mode, sekaligus mengaktifkannya
- INVALID_PARTITION_KEY_POLICY: skip, unknown, atau abort
- RETERMINATE_POLICY: reject atau overwrite
"""

from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ManagerConfig, OrderedConfig


class Settings(BaseSettings):
    """
    Settings verifier yang diload dari environment variables.

    Ordered mode aktif hanya jika sub-config `ordered` ada. Tanpa sub-config,
    semua event dicatat di partition key "unknown" dan urutan tidak dicek.
    """

    # Logging level
    log_level: str = "INFO"

    # Sub-config ordered mode, None = unordered
    ordered: OrderedConfig | None = None

    # Perlakuan ingestion loop terhadap atribut partitionkey yang bukan string
    # skip: event dibuang dan dihitung sebagai rejected
    # unknown: event dicatat di partition key sentinel
    # abort: loop berhenti dan exception diteruskan ke pemanggil
    invalid_partition_key_policy: Literal["skip", "unknown", "abort"] = "skip"

    # Perlakuan terhadap pemanggilan mark_terminated kedua
    reterminate_policy: Literal["reject", "overwrite"] = "reject"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_nested_delimiter="__", extra="ignore"
    )

    def manager_config(self) -> ManagerConfig:
        """Turunkan konfigurasi immutable untuk satu StateManager."""
        if self.ordered is not None:
            return ManagerConfig(
                ordered=True,
                ordered_config=self.ordered,
                invalid_partition_key_policy=self.invalid_partition_key_policy,
                reterminate_policy=self.reterminate_policy,
            )
        return ManagerConfig(
            ordered=False,
            invalid_partition_key_policy=self.invalid_partition_key_policy,
            reterminate_policy=self.reterminate_policy,
        )


# Instance global settings - digunakan di seluruh aplikasi
settings: Settings = Settings()
