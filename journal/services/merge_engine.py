"""Merge engine — applies partial updates from independent UI panels.

Each operation is one load -> reconcile -> validate -> save cycle against the
document store. Reconciliation is field-by-field and union-by-id (see
``collection_merge``), so a stale payload cannot erase entities created
elsewhere in the meantime. Either the whole reconciled document passes the
boundary validator and is saved, or nothing is written.

Within one process, cycles on the same trip id are serialized through a
per-trip ``asyncio.Lock``; file I/O runs in worker threads.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import Callable, Iterable
from datetime import datetime

from journal.contracts.backup import BackupRecord
from journal.contracts.common import utc_now
from journal.contracts.cost import CostData
from journal.contracts.enums import TripCollection
from journal.contracts.patches import (
    BatchRoutePatch,
    CostDataPatch,
    NewTripPayload,
    RemoveItemsPatch,
    TravelDataPatch,
    TripPatchRequest,
)
from journal.contracts.trip import (
    CostTrackingLink,
    TravelRoute,
    TripDocument,
)
from journal.contracts.validation import ValidationResult
from journal.persistence.document_store import TripDocumentStore
from journal.persistence.errors import ValidationFailedError
from journal.persistence.migrations import CURRENT_SCHEMA_VERSION
from journal.services.boundary_validator import (
    validate,
    validate_trip_boundary,
)
from journal.services.collection_merge import (
    retain_only,
    sync_accommodation_ids,
    union_by_id,
)

logger = logging.getLogger(__name__)

Validator = Callable[[TripDocument], ValidationResult]

_TRAVEL_SCALARS = ("title", "description", "start_date", "end_date", "instagram_username")
_COST_SCALARS = (
    "overall_budget",
    "reserved_budget",
    "currency",
    "custom_categories",
    "ynab_import_data",
)
# Cost tracker field -> trip field
_COST_TRIP_FIELDS = {
    "trip_title": "title",
    "trip_start_date": "start_date",
    "trip_end_date": "end_date",
}


def new_trip_id() -> str:
    return uuid.uuid4().hex[:16]


# ------------------------------------------------------------------
# Pure reconciliation functions (one per patch variant)
# ------------------------------------------------------------------


def _with_travel(
    doc: TripDocument,
    locations=None,
    routes=None,
    accommodations=None,
) -> TripDocument:
    """Replace travel collections and re-sync location -> accommodation ids.

    Accommodations of *doc* count as already bound, so only accommodations
    new to a location are added to its id list.
    """
    previous = doc.accommodations
    accommodations = previous if accommodations is None else accommodations
    locations = doc.travel_data.locations if locations is None else locations
    routes = doc.travel_data.routes if routes is None else routes
    locations = sync_accommodation_ids(locations, accommodations, previous)
    return doc.model_copy(update={
        "travel_data": doc.travel_data.model_copy(
            update={"locations": locations, "routes": routes}
        ),
        "accommodations": accommodations,
    })


def merge_travel_data(
    current: TripDocument, patch: TravelDataPatch, stamp: datetime | None = None
) -> TripDocument:
    """Reconcile a travel editor payload against the stored document.

    Entities the payload changes without an ``updated_at`` are stamped with
    *stamp*.
    """
    updates = {
        name: getattr(patch, name)
        for name in _TRAVEL_SCALARS
        if getattr(patch, name) is not None
    }
    merged = current.model_copy(update=updates)
    return _with_travel(
        merged,
        locations=union_by_id(current.travel_data.locations, patch.locations, stamp),
        routes=union_by_id(current.travel_data.routes, patch.routes, stamp),
        accommodations=union_by_id(current.accommodations, patch.accommodations, stamp),
    )


def merge_cost_data(
    current: TripDocument, patch: CostDataPatch, stamp: datetime | None = None
) -> TripDocument:
    """Reconcile a cost tracker payload against the stored document."""
    base = current.cost_data or CostData()
    cost_updates = {
        name: getattr(patch, name)
        for name in _COST_SCALARS
        if getattr(patch, name) is not None
    }
    cost_updates["country_budgets"] = union_by_id(
        base.country_budgets, patch.country_budgets, stamp
    )
    cost_updates["expenses"] = union_by_id(base.expenses, patch.expenses, stamp)

    trip_updates = {
        trip_field: getattr(patch, cost_field)
        for cost_field, trip_field in _COST_TRIP_FIELDS.items()
        if getattr(patch, cost_field) is not None
    }
    trip_updates["cost_data"] = base.model_copy(update=cost_updates)
    merged = current.model_copy(update=trip_updates)

    if patch.accommodations:
        merged = _with_travel(
            merged,
            accommodations=union_by_id(current.accommodations, patch.accommodations, stamp),
        )
    return merged


def apply_route_points(
    current: TripDocument, patch: BatchRoutePatch
) -> tuple[TripDocument, list[str]]:
    """Replace ``route_points`` of the named routes and sub-routes only.

    Returns the patched document and the route ids that matched nothing.
    """
    points = {u.route_id: list(u.route_points) for u in patch.updates}
    matched: set[str] = set()

    def patched(route: TravelRoute) -> TravelRoute:
        update = {}
        if route.id in points:
            update["route_points"] = points[route.id]
            matched.add(route.id)
        if route.sub_routes:
            subs = [patched(sub) for sub in route.sub_routes]
            if any(new is not old for new, old in zip(subs, route.sub_routes)):
                update["sub_routes"] = subs
        return route.model_copy(update=update) if update else route

    routes = [patched(route) for route in current.travel_data.routes]
    document = current.model_copy(update={
        "travel_data": current.travel_data.model_copy(update={"routes": routes}),
    })
    missing = [route_id for route_id in points if route_id not in matched]
    return document, missing


def _strip_links(items: Iterable, expense_ids: set[str]) -> list:
    result = []
    for item in items:
        update = {}
        links = [l for l in item.cost_tracking_links if l.expense_id not in expense_ids]
        if len(links) != len(item.cost_tracking_links):
            update["cost_tracking_links"] = links
        if isinstance(item, TravelRoute) and item.sub_routes:
            subs = _strip_links(item.sub_routes, expense_ids)
            if any(new is not old for new, old in zip(subs, item.sub_routes)):
                update["sub_routes"] = subs
        result.append(item.model_copy(update=update) if update else item)
    return result


def _without_expense_links(doc: TripDocument, expense_ids: set[str]) -> TripDocument:
    return doc.model_copy(update={
        "travel_data": doc.travel_data.model_copy(update={
            "locations": _strip_links(doc.travel_data.locations, expense_ids),
            "routes": _strip_links(doc.travel_data.routes, expense_ids),
        }),
        "accommodations": _strip_links(doc.accommodations, expense_ids),
    })


def remove_items(
    current: TripDocument, patch: RemoveItemsPatch
) -> tuple[TripDocument, list[str]]:
    """Explicit deletion path: keep only ``patch.remaining_ids``.

    Removing expenses also removes the cost-tracking links pointing at them;
    removing accommodations also removes them from ``accommodation_ids``.
    Returns the document and the removed ids.
    """
    collection = TripCollection(patch.collection)
    remaining = patch.remaining_ids

    if collection is TripCollection.LOCATIONS:
        kept, removed = retain_only(current.travel_data.locations, remaining)
        return _with_travel(current, locations=kept), removed

    if collection is TripCollection.ROUTES:
        kept, removed = retain_only(current.travel_data.routes, remaining)
        return _with_travel(current, routes=kept), removed

    if collection is TripCollection.ACCOMMODATIONS:
        kept, removed = retain_only(current.accommodations, remaining)
        gone = set(removed)
        locations = [
            loc.model_copy(update={
                "accommodation_ids": [i for i in loc.accommodation_ids if i not in gone]
            })
            if gone.intersection(loc.accommodation_ids) else loc
            for loc in current.travel_data.locations
        ]
        return _with_travel(current, locations=locations, accommodations=kept), removed

    if current.cost_data is None:
        return current, []

    if collection is TripCollection.EXPENSES:
        kept, removed = retain_only(current.cost_data.expenses, remaining)
        document = current.model_copy(update={
            "cost_data": current.cost_data.model_copy(update={"expenses": kept}),
        })
        return _without_expense_links(document, set(removed)), removed

    kept, removed = retain_only(current.cost_data.country_budgets, remaining)
    return current.model_copy(update={
        "cost_data": current.cost_data.model_copy(update={"country_budgets": kept}),
    }), removed


def link_expense_to_item(
    current: TripDocument, expense_id: str, item_id: str, description: str | None = None
) -> TripDocument:
    """Attach an expense to one travel item, detaching it from any other."""
    detached = _without_expense_links(current, {expense_id})
    link = CostTrackingLink(expense_id=expense_id, description=description)

    def attach(items: list) -> list:
        result = []
        for item in items:
            update = {}
            if item.id == item_id:
                update["cost_tracking_links"] = [*item.cost_tracking_links, link]
            if isinstance(item, TravelRoute) and item.sub_routes:
                subs = attach(item.sub_routes)
                if any(new is not old for new, old in zip(subs, item.sub_routes)):
                    update["sub_routes"] = subs
            result.append(item.model_copy(update=update) if update else item)
        return result

    return detached.model_copy(update={
        "travel_data": detached.travel_data.model_copy(update={
            "locations": attach(detached.travel_data.locations),
            "routes": attach(detached.travel_data.routes),
        }),
        "accommodations": attach(detached.accommodations),
    })


# ------------------------------------------------------------------
# Engine
# ------------------------------------------------------------------


class TripMergeEngine:
    """Orchestrates store reads, reconciliation, validation and store writes."""

    def __init__(self, store: TripDocumentStore, validator: Validator = validate):
        self._store = store
        self._validator = validator
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def store(self) -> TripDocumentStore:
        return self._store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_for(self, trip_id: str) -> asyncio.Lock:
        lock = self._locks.get(trip_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[trip_id] = lock
        return lock

    def _check(self, document: TripDocument) -> None:
        result = self._validator(document)
        if not result.is_valid:
            logger.warning(
                "Rejected write to trip %s: %d validation error(s)",
                document.id, len(result.errors),
            )
            raise ValidationFailedError(document.id, result.errors)

    async def _update(
        self,
        trip_id: str,
        reconcile: Callable[[TripDocument], TripDocument],
        label: str,
    ) -> TripDocument:
        async with self._lock_for(trip_id):
            current = await asyncio.to_thread(self._store.load, trip_id)
            updated = reconcile(current)
            self._check(updated)
            saved = await asyncio.to_thread(self._store.save, updated)
        logger.info("Applied %s update to trip %s", label, trip_id)
        return saved

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_trip(self, trip_id: str) -> TripDocument:
        return await asyncio.to_thread(self._store.load, trip_id)

    async def validate_trip(self, trip_id: str) -> ValidationResult:
        return self._validator(await self.get_trip(trip_id))

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create_trip(self, payload: NewTripPayload) -> TripDocument:
        now = utc_now()
        document = TripDocument(
            schema_version=CURRENT_SCHEMA_VERSION,
            id=new_trip_id(),
            title=payload.title or "",
            description=payload.description or "",
            start_date=payload.start_date,
            end_date=payload.end_date,
            instagram_username=payload.instagram_username,
            created_at=now,
            updated_at=now,
            cost_data=payload.cost_data,
        )
        document = _with_travel(
            document,
            locations=union_by_id([], payload.locations, now),
            routes=union_by_id([], payload.routes, now),
            accommodations=union_by_id([], payload.accommodations, now),
        )
        self._check(document)
        async with self._lock_for(document.id):
            created = await asyncio.to_thread(self._store.create, document)
        logger.info("Created trip %s", created.id)
        return created

    async def update_travel_data(self, trip_id: str, patch: TravelDataPatch) -> TripDocument:
        return await self._update(
            trip_id,
            lambda current: merge_travel_data(current, patch, utc_now()),
            "travel data",
        )

    async def update_cost_data(self, trip_id: str, patch: CostDataPatch) -> TripDocument:
        return await self._update(
            trip_id,
            lambda current: merge_cost_data(current, patch, utc_now()),
            "cost data",
        )

    def _route_points(
        self, trip_id: str, current: TripDocument, patch: BatchRoutePatch
    ) -> TripDocument:
        document, missing = apply_route_points(current, patch)
        if missing:
            logger.warning(
                "Batch route update on trip %s: unknown route id(s) %s",
                trip_id, ", ".join(missing),
            )
        return document

    def _removal(
        self, trip_id: str, current: TripDocument, patch: RemoveItemsPatch
    ) -> TripDocument:
        document, removed = remove_items(current, patch)
        logger.info(
            "Removing %d item(s) from %s of trip %s",
            len(removed), patch.collection, trip_id,
        )
        return document

    async def apply_batch_route_update(
        self, trip_id: str, patch: BatchRoutePatch
    ) -> TripDocument:
        return await self._update(
            trip_id,
            lambda current: self._route_points(trip_id, current, patch),
            "batch route",
        )

    async def remove_items(self, trip_id: str, patch: RemoveItemsPatch) -> TripDocument:
        return await self._update(
            trip_id,
            lambda current: self._removal(trip_id, current, patch),
            "removal",
        )

    async def apply_trip_patch(self, trip_id: str, request: TripPatchRequest) -> TripDocument:
        """Apply route points, then removals, as one cycle.

        Either both parts are saved or, when the result fails validation,
        neither is.
        """

        def reconcile(current: TripDocument) -> TripDocument:
            document = current
            if request.batch_route_update is not None:
                document = self._route_points(
                    trip_id, document, BatchRoutePatch(updates=request.batch_route_update)
                )
            if request.remove_items is not None:
                document = self._removal(trip_id, document, request.remove_items)
            return document

        return await self._update(trip_id, reconcile, "patch")

    async def link_expense(
        self,
        trip_id: str,
        expense_id: str,
        item_id: str,
        description: str | None = None,
    ) -> TripDocument:
        """Link an expense to a travel item of the same trip."""

        def reconcile(current: TripDocument) -> TripDocument:
            boundary = validate_trip_boundary(expense_id, item_id, current)
            if not boundary.is_valid:
                raise ValidationFailedError(trip_id, boundary.errors)
            return link_expense_to_item(current, expense_id, item_id, description)

        return await self._update(trip_id, reconcile, "expense link")

    async def delete_trip(self, trip_id: str, reason: str | None = None) -> BackupRecord:
        async with self._lock_for(trip_id):
            return await asyncio.to_thread(self._store.delete, trip_id, reason)


__all__ = [
    "TripMergeEngine",
    "apply_route_points",
    "link_expense_to_item",
    "merge_cost_data",
    "merge_travel_data",
    "new_trip_id",
    "remove_items",
]
