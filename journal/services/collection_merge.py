"""Union-by-id reconciliation of id-keyed collections.

UI panels hold their own, possibly stale, copy of a collection. Merging an
incoming copy never drops an entity the sender did not know about:

- id only in storage   -> kept (the sender's view predates it)
- id only in payload   -> added
- id in both           -> the copy with the newer ``updated_at`` wins; a
  payload copy without ``updated_at`` leaves the stored content in place but
  still carries its structural reference fields over, and its sub-routes are
  merged by id

Payload copies accepted without a timestamp can be stamped by the caller, so
a later stale copy of the same entity loses against them.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from journal.contracts.common import TrackedEntity
from journal.contracts.cost import BudgetItem, Expense
from journal.contracts.trip import Accommodation, Location, TravelRoute

T = TypeVar("T", bound=TrackedEntity)

# Reference fields a payload may change even when it carries no timestamp.
STRUCTURAL_FIELDS: dict[type, tuple[str, ...]] = {
    Location: ("accommodation_ids",),
    Accommodation: ("location_id",),
    TravelRoute: ("route_points",),
    Expense: ("travel_reference",),
    BudgetItem: ("periods",),
}


def pick_version(stored: T, incoming: T) -> T:
    """Reconcile two copies of the same entity."""
    if incoming.updated_at is not None:
        if stored.updated_at is None or incoming.updated_at >= stored.updated_at:
            return incoming
        return stored
    if stored.updated_at is None:
        return incoming

    structural = STRUCTURAL_FIELDS.get(type(stored), ())
    update = {
        name: getattr(incoming, name)
        for name in structural
        if name in incoming.model_fields_set
    }
    if isinstance(stored, TravelRoute) and incoming.sub_routes:
        update["sub_routes"] = union_by_id(stored.sub_routes or [], incoming.sub_routes)
    return stored.model_copy(update=update) if update else stored


def _content(item: TrackedEntity) -> dict:
    return item.model_dump(exclude={"updated_at"})


def _stamped(previous: T | None, item: T, stamp: datetime) -> T:
    if item.updated_at is not None:
        return item
    if previous is not None and _content(previous) == _content(item):
        return item
    return item.model_copy(update={"updated_at": stamp})


def union_by_id(
    stored: Sequence[T],
    incoming: Sequence[T] | None,
    stamp: datetime | None = None,
) -> list[T]:
    """Merge *incoming* into *stored*. ``None`` or ``[]`` changes nothing.

    When the payload lists every stored id it is a full view and its order is
    kept; otherwise stored order is kept and new entities are appended.

    With *stamp*, payload copies that are accepted without an ``updated_at``
    and differ from the stored copy (or are new) get ``updated_at=stamp``.
    """
    if not incoming:
        return list(stored)

    incoming_by_id: dict[str, T] = {}
    for item in incoming:
        incoming_by_id[item.id] = item

    stored_by_id = {item.id: item for item in stored}
    merged: dict[str, T] = {}
    for item_id, item in stored_by_id.items():
        if item_id in incoming_by_id:
            merged[item_id] = pick_version(item, incoming_by_id[item_id])
        else:
            merged[item_id] = item

    if stored_by_id.keys() <= incoming_by_id.keys():
        order = list(incoming_by_id)
    else:
        order = list(stored_by_id) + [i for i in incoming_by_id if i not in stored_by_id]

    result = []
    for item_id in order:
        item = merged[item_id] if item_id in merged else incoming_by_id[item_id]
        if stamp is not None and item is incoming_by_id.get(item_id):
            item = _stamped(stored_by_id.get(item_id), item, stamp)
        result.append(item)
    return result


def retain_only(items: Sequence[T], remaining_ids: Iterable[str]) -> tuple[list[T], list[str]]:
    """Keep the entities whose id is in *remaining_ids*.

    Returns ``(kept, removed_ids)``.
    """
    keep = set(remaining_ids)
    kept = [item for item in items if item.id in keep]
    removed = [item.id for item in items if item.id not in keep]
    return kept, removed


def sync_accommodation_ids(
    locations: Sequence[Location],
    accommodations: Sequence[Accommodation],
    previous: Sequence[Accommodation] = (),
) -> list[Location]:
    """Make ``Location.accommodation_ids`` agree with ``Accommodation.location_id``.

    Ids of accommodations bound to another location are dropped. An
    accommodation is appended to its location's list only when it is newly
    bound there, i.e. *previous* (the accommodations before this change) did
    not hold it with that ``location_id``. Every other id list is kept as is,
    including ids with no accommodation at all.
    """
    owner = {acc.id: acc.location_id for acc in accommodations}
    bound_before = {(acc.id, acc.location_id) for acc in previous}
    newly_bound: dict[str, list[str]] = defaultdict(list)
    for acc in accommodations:
        if (acc.id, acc.location_id) not in bound_before:
            newly_bound[acc.location_id].append(acc.id)

    result = []
    for loc in locations:
        ids: list[str] = []
        for acc_id in loc.accommodation_ids:
            if owner.get(acc_id, loc.id) == loc.id and acc_id not in ids:
                ids.append(acc_id)
        for acc_id in newly_bound.get(loc.id, []):
            if acc_id not in ids:
                ids.append(acc_id)
        if ids != loc.accommodation_ids:
            loc = loc.model_copy(update={"accommodation_ids": ids})
        result.append(loc)
    return result
