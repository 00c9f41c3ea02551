"""Backup catalog — timestamped copies of deleted trips, with checksums."""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from journal.contracts.backup import BackupRecord
from journal.contracts.common import utc_now
from journal.contracts.trip import TripDocument
from journal.persistence.config import StoreConfig
from journal.persistence.errors import (
    BackupIntegrityError,
    BackupNotFoundError,
    CorruptDocumentError,
    StorageIOError,
)
from journal.persistence.files import dump_json, write_atomic
from journal.persistence.migrations import migrate

if TYPE_CHECKING:
    from journal.persistence.document_store import TripDocumentStore

logger = logging.getLogger(__name__)

METADATA_FILE = "backup-metadata.json"

_records_adapter = TypeAdapter(list[BackupRecord])


def checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class BackupCatalog:
    """Writes backup files and keeps their metadata in one JSON list.

    - ``record()`` stores a copy and its SHA-256 checksum.
    - ``verify_integrity()`` re-hashes a backup file against its metadata.
    - ``restore()`` recreates a deleted trip from a verified backup.
    """

    def __init__(self, config: StoreConfig):
        self._dir = config.resolved_backup_dir
        self._indent = config.indent

    @property
    def backup_dir(self) -> Path:
        return self._dir

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _metadata_path(self) -> Path:
        return self._dir / METADATA_FILE

    def _load_metadata(self) -> list[BackupRecord]:
        path = self._metadata_path()
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageIOError(f"Failed to read {path}: {exc}") from exc
        try:
            return _records_adapter.validate_json(content)
        except ValidationError as exc:
            raise StorageIOError(f"Backup metadata {path} is unreadable: {exc}") from exc

    def _save_metadata(self, records: list[BackupRecord]) -> None:
        data = [r.to_document() for r in records]
        try:
            write_atomic(self._metadata_path(), dump_json(data, self._indent))
        except OSError as exc:
            raise StorageIOError(f"Failed to write backup metadata: {exc}") from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record(
        self,
        trip_id: str,
        title: str,
        content: bytes,
        reason: str | None = None,
        prefix: str = "trip",
    ) -> BackupRecord:
        """Store *content* as a new backup of *trip_id*. Returns its metadata."""
        now = utc_now()
        stamp = now.strftime("%Y%m%dT%H%M%S%fZ")
        file_name = f"{prefix}-{trip_id}-{stamp}.json"

        try:
            write_atomic(self._dir / file_name, content)
        except OSError as exc:
            raise StorageIOError(f"Failed to write backup {file_name}: {exc}") from exc

        record = BackupRecord(
            id=f"backup-{stamp}-{uuid.uuid4().hex[:8]}",
            trip_id=trip_id,
            title=title,
            deleted_at=now,
            file_name=file_name,
            file_size=len(content),
            checksum=checksum(content),
            reason=reason,
        )
        records = self._load_metadata()
        records.append(record)
        self._save_metadata(records)
        logger.info("Backed up trip %s to %s", trip_id, file_name)
        return record

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_backups(self, trip_id: str | None = None) -> list[BackupRecord]:
        """Return backups, newest first, optionally for one trip only."""
        records = self._load_metadata()
        if trip_id is not None:
            records = [r for r in records if r.trip_id == trip_id]
        return sorted(records, key=lambda r: r.deleted_at, reverse=True)

    def get(self, backup_id: str) -> BackupRecord:
        for record in self._load_metadata():
            if record.id == backup_id:
                return record
        raise BackupNotFoundError(f"backup {backup_id} not found")

    def read(self, backup_id: str) -> bytes:
        record = self.get(backup_id)
        path = self._dir / record.file_name
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise BackupNotFoundError(f"backup file {record.file_name} is missing") from exc
        except OSError as exc:
            raise StorageIOError(f"Failed to read {path}: {exc}") from exc

    def verify_integrity(self, backup_id: str) -> bool:
        record = self.get(backup_id)
        try:
            content = self.read(backup_id)
        except BackupNotFoundError:
            logger.warning("Backup %s has no file on disk", backup_id)
            return False
        return checksum(content) == record.checksum

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, backup_id: str, store: TripDocumentStore) -> TripDocument:
        """Recreate the trip saved in a backup. Fails if the trip exists again."""
        record = self.get(backup_id)
        content = self.read(backup_id)
        if checksum(content) != record.checksum:
            raise BackupIntegrityError(f"backup {backup_id} does not match its checksum")

        try:
            raw = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptDocumentError(record.trip_id, f"backup is not valid JSON: {exc}") from exc

        document = store.create(migrate(raw))
        logger.info("Restored trip %s from backup %s", document.id, backup_id)
        return document
