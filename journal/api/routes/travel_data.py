"""Trip creation, travel editor updates, batch route patches and deletion."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from journal.api.deps import get_merge_engine, get_store, http_error, require_trip_id
from journal.contracts.patches import (
    NewTripPayload,
    TravelDataPatch,
    TripPatchRequest,
)
from journal.persistence.document_store import TripDocumentStore
from journal.persistence.errors import PersistenceError
from journal.persistence.migrations import extract_travel_view
from journal.services.merge_engine import TripMergeEngine

router = APIRouter(prefix="/travel-data", tags=["travel-data"])


def _links(trip_id: str) -> dict:
    return {"mapUrl": f"/map/{trip_id}", "embedUrl": f"/embed/{trip_id}"}


@router.post("", status_code=201)
async def create_trip(
    payload: NewTripPayload,
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        trip = await engine.create_trip(payload)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "id": trip.id, **_links(trip.id)}


@router.get("/list")
async def list_trips(store: TripDocumentStore = Depends(get_store)) -> list[dict]:
    summaries = await asyncio.to_thread(store.list_trips)
    return [s.to_document() for s in summaries]


@router.get("")
async def get_travel_data(
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        trip = await engine.get_trip(trip_id)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return extract_travel_view(trip)


@router.put("")
async def update_travel_data(
    patch: TravelDataPatch,
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        trip = await engine.update_travel_data(trip_id, patch)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "id": trip.id, **_links(trip.id)}


@router.patch("")
async def patch_travel_data(
    body: TripPatchRequest,
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    if body.batch_route_update is None and body.remove_items is None:
        raise HTTPException(
            status_code=400,
            detail="Expected batchRouteUpdate or removeItems",
        )
    try:
        trip = await engine.apply_trip_patch(trip_id, body)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return extract_travel_view(trip)


@router.delete("")
async def delete_trip(
    reason: str | None = None,
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        record = await engine.delete_trip(trip_id, reason)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "id": trip_id, "backupId": record.id}
