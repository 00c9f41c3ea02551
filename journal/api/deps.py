"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from journal.persistence.backups import BackupCatalog
from journal.persistence.document_store import TripDocumentStore
from journal.persistence.errors import (
    BackupNotFoundError,
    DocumentExistsError,
    DocumentNotFoundError,
    InvalidTripIdError,
    PersistenceError,
    ValidationFailedError,
)
from journal.services.merge_engine import TripMergeEngine


# ------------------------------------------------------------------
# Singletons from app.state
# ------------------------------------------------------------------


def get_merge_engine(request: Request) -> TripMergeEngine:
    return request.app.state.merge_engine


def get_store(
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> TripDocumentStore:
    return engine.store


def get_backup_catalog(
    store: TripDocumentStore = Depends(get_store),
) -> BackupCatalog:
    return store.backups


# ------------------------------------------------------------------
# Query parameters
# ------------------------------------------------------------------


def require_trip_id(id: str | None = None) -> str:
    """The ``?id=`` query parameter shared by the trip endpoints."""
    if not id:
        raise HTTPException(status_code=400, detail="Trip id is required")
    return id


# ------------------------------------------------------------------
# Error translation
# ------------------------------------------------------------------


def http_error(exc: PersistenceError) -> HTTPException:
    """Map a persistence failure to the HTTP error returned to the UI."""
    if isinstance(exc, (DocumentNotFoundError, BackupNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidTripIdError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, DocumentExistsError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ValidationFailedError):
        return HTTPException(
            status_code=422,
            detail={
                "message": str(exc),
                "errors": [
                    e.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for e in exc.errors
                ],
            },
        )
    # Corrupt documents, I/O failures and broken backups
    return HTTPException(status_code=500, detail=str(exc))
