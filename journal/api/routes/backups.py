"""Backups of deleted trips: listing, inspection and restore."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query

from journal.api.deps import get_backup_catalog, get_store, http_error
from journal.persistence.backups import BackupCatalog
from journal.persistence.document_store import TripDocumentStore
from journal.persistence.errors import PersistenceError

router = APIRouter(prefix="/backups", tags=["backups"])


@router.get("")
async def list_backups(
    trip_id: str | None = Query(default=None, alias="tripId"),
    catalog: BackupCatalog = Depends(get_backup_catalog),
) -> list[dict]:
    try:
        records = await asyncio.to_thread(catalog.list_backups, trip_id)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return [r.to_document() for r in records]


@router.get("/{backup_id}")
async def get_backup(
    backup_id: str,
    catalog: BackupCatalog = Depends(get_backup_catalog),
) -> dict:
    try:
        record = await asyncio.to_thread(catalog.get, backup_id)
        intact = await asyncio.to_thread(catalog.verify_integrity, backup_id)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {**record.to_document(), "integrityOk": intact}


@router.post("/{backup_id}/restore", status_code=201)
async def restore_backup(
    backup_id: str,
    catalog: BackupCatalog = Depends(get_backup_catalog),
    store: TripDocumentStore = Depends(get_store),
) -> dict:
    try:
        trip = await asyncio.to_thread(catalog.restore, backup_id, store)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "id": trip.id, "backupId": backup_id}
