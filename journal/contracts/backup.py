"""BackupRecord — metadata for a backup copy written before a trip is deleted.

Stored at: ``{backup_dir}/backup-metadata.json`` (one list for all backups),
next to the backup files themselves.
"""

from pydantic import Field

from journal.contracts.common import DocumentModel, UtcDatetime, utc_now


class BackupRecord(DocumentModel):
    id: str
    trip_id: str
    title: str = ""
    deleted_at: UtcDatetime = Field(default_factory=utc_now)
    file_name: str = Field(..., description="File name inside the backup directory")
    file_size: int = Field(..., ge=0)
    checksum: str = Field(..., description="SHA-256 of the backup content")
    reason: str | None = None
