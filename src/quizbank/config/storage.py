"""Where the question bank lives on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_ENV_VAR: Final[str] = "QUIZBANK_DATA_DIR"
DATABASE_URI_ENV_VAR: Final[str] = "DATABASE_URI"
DEFAULT_DB_FILENAME: Final[str] = "quizbank.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, create_dir: bool = True) -> Path:
        data_dir = self.resolve_data_dir()
        if create_dir:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @classmethod
    def for_sqlite_file(cls, path: Path) -> DatabaseConfig:
        return cls(uri=f"sqlite+pysqlite:///{path}")


def _platform_data_home() -> Path:
    # LOCALAPPDATA on Windows, XDG_DATA_HOME elsewhere
    if os.name == "nt":
        return Path(os.getenv("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def get_storage_config() -> StorageConfig:
    override = os.getenv(DATA_DIR_ENV_VAR)
    data_dir = Path(override) if override else _platform_data_home() / "quizbank"
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory is used."""

    if uri := os.getenv(DATABASE_URI_ENV_VAR):
        return DatabaseConfig(uri=uri)
    return DatabaseConfig.for_sqlite_file((storage or get_storage_config()).database_path())
