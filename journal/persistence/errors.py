"""Persistence-specific exceptions."""


class PersistenceError(Exception):
    """Base exception for all persistence errors."""


class DocumentNotFoundError(PersistenceError):
    """Raised when no file exists for a trip id."""

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"trip {trip_id} not found")


class CorruptDocumentError(PersistenceError):
    """Raised when a stored trip cannot be decoded or migrated.

    Fatal for that document: it is never repaired automatically.
    """

    def __init__(self, trip_id: str | None, reason: str):
        self.trip_id = trip_id
        self.reason = reason
        super().__init__(f"trip {trip_id or '?'} is corrupt: {reason}")


class StorageIOError(PersistenceError):
    """Raised when the file system fails during a read or a write."""


class InvalidTripIdError(PersistenceError):
    """Raised when a trip id cannot be mapped safely to a file name."""


class DocumentExistsError(PersistenceError):
    """Raised when creating a trip whose file already exists."""


class ValidationFailedError(PersistenceError):
    """Raised when a reconciled document violates a referential invariant.

    The write is rejected and the stored document is left unchanged.
    """

    def __init__(self, trip_id: str, errors: list):
        self.trip_id = trip_id
        self.errors = errors
        super().__init__(
            f"trip {trip_id} failed validation with {len(errors)} error(s)"
        )


class BackupNotFoundError(PersistenceError):
    """Raised when a backup id is not present in the backup metadata."""


class BackupIntegrityError(PersistenceError):
    """Raised when a backup file no longer matches its recorded checksum."""
