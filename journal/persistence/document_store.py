"""File-backed trip document store — one pretty-printed JSON file per trip."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from journal.contracts.backup import BackupRecord
from journal.contracts.common import utc_now
from journal.contracts.trip import TripDocument, TripSummary
from journal.persistence.backups import BackupCatalog
from journal.persistence.config import StoreConfig
from journal.persistence.errors import (
    CorruptDocumentError,
    DocumentExistsError,
    DocumentNotFoundError,
    InvalidTripIdError,
    PersistenceError,
    StorageIOError,
)
from journal.persistence.files import dump_json, write_atomic
from journal.persistence.migrations import CURRENT_SCHEMA_VERSION, migrate

logger = logging.getLogger(__name__)

TRIP_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")
TRIP_FILE_PREFIX = "trip-"


class TripDocumentStore:
    """Whole-document reads and writes of trip files.

    The store performs no merge logic and takes no file lock: every ``save``
    replaces the whole file (atomically). Callers that read-modify-write must
    serialize themselves (see ``TripMergeEngine``).
    """

    def __init__(self, config: StoreConfig, backups: BackupCatalog | None = None):
        self._config = config
        self._backups = backups or BackupCatalog(config)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def backups(self) -> BackupCatalog:
        return self._backups

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def path_for(self, trip_id: str) -> Path:
        if not TRIP_ID_PATTERN.match(trip_id):
            raise InvalidTripIdError(f"invalid trip id {trip_id!r}")
        return self._config.data_dir / f"{TRIP_FILE_PREFIX}{trip_id}.json"

    def _read_bytes(self, trip_id: str) -> bytes:
        path = self.path_for(trip_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(trip_id) from exc
        except OSError as exc:
            raise StorageIOError(f"Failed to read {path}: {exc}") from exc

    @staticmethod
    def _decode(trip_id: str, content: bytes) -> dict:
        try:
            raw = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptDocumentError(trip_id, f"invalid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise CorruptDocumentError(trip_id, "document is not a JSON object")
        return raw

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def exists(self, trip_id: str) -> bool:
        return self.path_for(trip_id).exists()

    def load_raw(self, trip_id: str) -> dict:
        """Decoded file content, without migration."""
        return self._decode(trip_id, self._read_bytes(trip_id))

    def load(self, trip_id: str) -> TripDocument:
        """Read, decode and migrate a trip to the current schema."""
        raw = self.load_raw(trip_id)
        document = migrate(raw)
        if document.id != trip_id:
            raise CorruptDocumentError(
                trip_id, f"file contains trip {document.id!r}"
            )
        return document

    def trip_ids(self) -> list[str]:
        """Ids of every trip file in the data directory, sorted."""
        if not self._config.data_dir.exists():
            return []
        return sorted(
            path.stem[len(TRIP_FILE_PREFIX):]
            for path in self._config.data_dir.glob(f"{TRIP_FILE_PREFIX}*.json")
        )

    def list_trips(self) -> list[TripSummary]:
        """Summaries of every readable trip, newest first.

        Unreadable files are skipped with a warning so one corrupt trip does
        not hide the others.
        """
        summaries: list[TripSummary] = []
        for trip_id in self.trip_ids():
            try:
                summaries.append(self.load(trip_id).summary())
            except PersistenceError as exc:
                logger.warning("Skipping trip %s: %s", trip_id, exc)
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, document: TripDocument) -> TripDocument:
        """Stamp ``updatedAt`` and write the whole document. Returns what was written."""
        stamped = document.model_copy(
            update={"schema_version": CURRENT_SCHEMA_VERSION, "updated_at": utc_now()}
        )
        path = self.path_for(stamped.id)
        try:
            write_atomic(path, dump_json(stamped.to_document(), self._config.indent))
        except OSError as exc:
            raise StorageIOError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Saved trip %s", stamped.id)
        return stamped

    def create(self, document: TripDocument) -> TripDocument:
        if self.exists(document.id):
            raise DocumentExistsError(f"trip {document.id} already exists")
        return self.save(document)

    def delete(self, trip_id: str, reason: str | None = None) -> BackupRecord:
        """Back the trip up, then remove its file. Returns the backup metadata."""
        content = self._read_bytes(trip_id)
        title = ""
        try:
            title = str(self._decode(trip_id, content).get("title") or "")
        except CorruptDocumentError:
            logger.warning("Deleting unreadable trip %s; backing up raw bytes", trip_id)

        record = self._backups.record(trip_id, title, content, reason=reason)

        path = self.path_for(trip_id)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(trip_id) from exc
        except OSError as exc:
            raise StorageIOError(f"Failed to delete {path}: {exc}") from exc
        logger.info("Deleted trip %s (backup %s)", trip_id, record.id)
        return record
