"""Bulk-import defaults."""

from __future__ import annotations

from dataclasses import dataclass

from quizbank.domain.bulk_import.apply import DEFAULT_BATCH_SIZE

from .env import optional_positive_int

DEFAULT_IMPORT_BATCH_SIZE = DEFAULT_BATCH_SIZE
BATCH_SIZE_ENV_VAR = "QUIZBANK_IMPORT_BATCH_SIZE"


@dataclass(frozen=True, slots=True)
class ImportConfig:
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE


def get_import_config() -> ImportConfig:
    return ImportConfig(
        batch_size=optional_positive_int(BATCH_SIZE_ENV_VAR, default=DEFAULT_IMPORT_BATCH_SIZE)
    )
