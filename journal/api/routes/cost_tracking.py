"""Cost tracker endpoints: read, merge updates, validation and expense links."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from journal.api.deps import get_merge_engine, http_error, require_trip_id
from journal.contracts.patches import CostDataPatch, ExpenseLinkRequest
from journal.persistence.errors import PersistenceError
from journal.persistence.migrations import extract_cost_view
from journal.services.merge_engine import TripMergeEngine

router = APIRouter(prefix="/cost-tracking", tags=["cost-tracking"])


@router.get("")
async def get_cost_data(
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        trip = await engine.get_trip(trip_id)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    view = extract_cost_view(trip)
    if view is None:
        raise HTTPException(status_code=404, detail="Cost data not found")
    return view


@router.put("")
async def update_cost_data(
    patch: CostDataPatch,
    trip_id: str = Depends(require_trip_id),
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        trip = await engine.update_cost_data(trip_id, patch)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, **extract_cost_view(trip)}


@router.get("/{trip_id}/validate")
async def validate_trip(
    trip_id: str,
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        result = await engine.validate_trip(trip_id)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"tripId": trip_id, **result.to_report()}


@router.post("/{trip_id}/links")
async def link_expense(
    trip_id: str,
    body: ExpenseLinkRequest,
    engine: TripMergeEngine = Depends(get_merge_engine),
) -> dict:
    try:
        await engine.link_expense(trip_id, body.expense_id, body.item_id, body.description)
    except PersistenceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "expenseId": body.expense_id, "itemId": body.item_id}
