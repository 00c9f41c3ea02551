"""Store configuration — passed explicitly to the store, never read globally."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DATA_DIR_ENV = "TRAVEL_JOURNAL_DATA_DIR"
BACKUP_DIR_ENV = "TRAVEL_JOURNAL_BACKUP_DIR"


class StoreConfig(BaseModel):
    """Where trip documents and their backups live on disk."""

    data_dir: Path
    backup_dir: Path | None = None
    indent: int = 2

    model_config = ConfigDict(frozen=True)

    @property
    def resolved_backup_dir(self) -> Path:
        return self.backup_dir or self.data_dir / "backups"

    @classmethod
    def from_env(cls, default_data_dir: Path | None = None) -> StoreConfig:
        """Build a config from ``TRAVEL_JOURNAL_*`` environment variables.

        Only entry points (the API factory, the CLI) call this; library code
        receives the resulting object.
        """
        data_dir = os.environ.get(DATA_DIR_ENV)
        backup_dir = os.environ.get(BACKUP_DIR_ENV)
        return cls(
            data_dir=Path(data_dir) if data_dir else (default_data_dir or Path.cwd() / "data"),
            backup_dir=Path(backup_dir) if backup_dir else None,
        )
