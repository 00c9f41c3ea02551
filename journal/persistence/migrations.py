"""Schema migrations for stored trip documents.

Every transform is a pure function taking a decoded document at version N and
returning a new dict at version N+1. Transforms are idempotent, and ``migrate``
leaves a document that is already current untouched, so migrating twice is
the same as migrating once.

Version history:

1. Unified travel + cost document.
2. Standalone ``accommodations`` referenced from ``location.accommodationIds``
   (previously embedded in the location as ``accommodationData``).
3. Routes use ``transportType`` (previously ``type``); expenses always carry
   ``expenseType`` and ``isGeneralExpense``.
4. Cost-tracking links pointing at deleted expenses are dropped.
5. Location references to missing accommodations are repaired with
   placeholder accommodations.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator
from typing import Any

from pydantic import ValidationError

from journal.contracts.trip import TripDocument
from journal.persistence.errors import CorruptDocumentError

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 5

PLACEHOLDER_ACCOMMODATION_NAME = "Recovered accommodation"

RawDocument = dict[str, Any]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _check_header(raw: Any) -> tuple[str, int]:
    """Return ``(id, schemaVersion)`` or raise ``CorruptDocumentError``."""
    if not isinstance(raw, dict):
        raise CorruptDocumentError(None, "document is not a JSON object")

    trip_id = raw.get("id")
    if not isinstance(trip_id, str) or not trip_id.strip():
        raise CorruptDocumentError(None, "missing or invalid 'id'")

    version = raw.get("schemaVersion")
    if isinstance(version, bool) or not isinstance(version, int):
        raise CorruptDocumentError(trip_id, "missing or invalid 'schemaVersion'")
    if version < 1:
        raise CorruptDocumentError(trip_id, f"invalid schemaVersion {version}")
    if version > CURRENT_SCHEMA_VERSION:
        raise CorruptDocumentError(
            trip_id,
            f"schemaVersion {version} is newer than supported {CURRENT_SCHEMA_VERSION}",
        )
    return trip_id, version


def _list_field(container: dict, key: str) -> list:
    value = container.get(key)
    if not isinstance(value, list):
        value = []
        container[key] = value
    return value


def _ensure_containers(doc: RawDocument) -> None:
    """Fill missing collection containers so transforms can walk them."""
    travel = doc.get("travelData")
    if not isinstance(travel, dict):
        travel = {}
        doc["travelData"] = travel
    _list_field(travel, "locations")
    _list_field(travel, "routes")
    _list_field(doc, "accommodations")


def _locations(doc: RawDocument) -> list[dict]:
    return [loc for loc in doc["travelData"]["locations"] if isinstance(loc, dict)]


def _routes_with_subroutes(doc: RawDocument) -> Iterator[dict]:
    for route in doc["travelData"]["routes"]:
        if not isinstance(route, dict):
            continue
        yield route
        for sub in route.get("subRoutes") or []:
            if isinstance(sub, dict):
                yield sub


def _expenses(doc: RawDocument) -> list[dict]:
    cost = doc.get("costData")
    if not isinstance(cost, dict):
        return []
    return [e for e in cost.get("expenses") or [] if isinstance(e, dict)]


# ------------------------------------------------------------------
# Transforms
# ------------------------------------------------------------------


def _v1_to_v2(doc: RawDocument) -> RawDocument:
    """Guarantee container fields and extract embedded accommodations."""
    doc.setdefault("title", "")
    doc.setdefault("description", "")
    if "createdAt" not in doc and "updatedAt" in doc:
        doc["createdAt"] = doc["updatedAt"]

    accommodations = doc["accommodations"]
    known = {a.get("id") for a in accommodations if isinstance(a, dict)}

    for loc in _locations(doc):
        embedded = loc.pop("accommodationData", None)
        is_public = loc.pop("isAccommodationPublic", False)
        if not embedded or loc.get("accommodationIds"):
            continue
        acc_id = f"{loc['id']}-accommodation"
        if acc_id not in known:
            accommodation = {
                "id": acc_id,
                "name": loc.get("name") or "Accommodation",
                "locationId": loc["id"],
                "accommodationData": embedded,
                "isAccommodationPublic": bool(is_public),
                "costTrackingLinks": [],
            }
            if "createdAt" in doc:
                accommodation["createdAt"] = doc["createdAt"]
            accommodations.append(accommodation)
            known.add(acc_id)
        loc["accommodationIds"] = [acc_id]

    doc["schemaVersion"] = 2
    return doc


def _v2_to_v3(doc: RawDocument) -> RawDocument:
    """Rename route ``type`` to ``transportType``, default expense flags."""
    for route in _routes_with_subroutes(doc):
        legacy_type = route.pop("type", None)
        if legacy_type is not None and "transportType" not in route:
            route["transportType"] = legacy_type

    for expense in _expenses(doc):
        expense.setdefault("expenseType", "actual")
        expense.setdefault("isGeneralExpense", False)

    doc["schemaVersion"] = 3
    return doc


def _v3_to_v4(doc: RawDocument) -> RawDocument:
    """Drop cost-tracking links whose expense no longer exists."""
    valid = {e.get("id") for e in _expenses(doc)}
    removed: list[str] = []

    items: list[tuple[str, dict]] = [("location", loc) for loc in _locations(doc)]
    items += [("route", r) for r in _routes_with_subroutes(doc)]
    items += [
        ("accommodation", a) for a in doc["accommodations"] if isinstance(a, dict)
    ]
    for kind, item in items:
        links = item.get("costTrackingLinks")
        if not isinstance(links, list):
            continue
        kept = []
        for link in links:
            if isinstance(link, dict) and link.get("expenseId") in valid:
                kept.append(link)
            else:
                expense_id = link.get("expenseId") if isinstance(link, dict) else link
                removed.append(f"{expense_id} from {kind} {item.get('id')}")
        item["costTrackingLinks"] = kept

    if removed:
        logger.info(
            "Trip %s v3->v4: removed %d dangling expense link(s): %s",
            doc["id"], len(removed), "; ".join(removed),
        )
    doc["schemaVersion"] = 4
    return doc


def _v4_to_v5(doc: RawDocument) -> RawDocument:
    """Create placeholders for accommodation ids no accommodation answers to."""
    accommodations = doc["accommodations"]
    known = {a.get("id") for a in accommodations if isinstance(a, dict)}

    for loc in _locations(doc):
        for acc_id in loc.get("accommodationIds") or []:
            if acc_id in known:
                continue
            links = [
                {"expenseId": e["id"], "description": e.get("description") or ""}
                for e in _expenses(doc)
                if isinstance(e.get("travelReference"), dict)
                and e["travelReference"].get("accommodationId") == acc_id
            ]
            placeholder = {
                "id": acc_id,
                "name": PLACEHOLDER_ACCOMMODATION_NAME,
                "locationId": loc["id"],
                "accommodationData": "",
                "isAccommodationPublic": False,
                "costTrackingLinks": links,
            }
            if "createdAt" in doc:
                placeholder["createdAt"] = doc["createdAt"]
            accommodations.append(placeholder)
            known.add(acc_id)
            logger.warning(
                "Trip %s v4->v5: recreated missing accommodation %s for location %s",
                doc["id"], acc_id, loc["id"],
            )

    doc["schemaVersion"] = 5
    return doc


MIGRATIONS: dict[int, Callable[[RawDocument], RawDocument]] = {
    1: _v1_to_v2,
    2: _v2_to_v3,
    3: _v3_to_v4,
    4: _v4_to_v5,
}


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def needs_migration(raw: Any) -> bool:
    _, version = _check_header(raw)
    return version < CURRENT_SCHEMA_VERSION


def migrate_raw(raw: Any) -> RawDocument:
    """Apply the transform chain to a decoded document. Input is not mutated."""
    trip_id, version = _check_header(raw)
    doc = copy.deepcopy(raw)
    _ensure_containers(doc)
    if version == CURRENT_SCHEMA_VERSION:
        return doc

    start = version
    while version < CURRENT_SCHEMA_VERSION:
        try:
            doc = MIGRATIONS[version](doc)
        except (KeyError, TypeError, AttributeError) as exc:
            raise CorruptDocumentError(
                trip_id, f"migration from v{version} failed: {exc!r}"
            ) from exc
        version += 1

    logger.info("Migrated trip %s from schema v%d to v%d", trip_id, start, version)
    return doc


def migrate(raw: RawDocument | TripDocument) -> TripDocument:
    """Upgrade a decoded document of any known version to the current schema."""
    if isinstance(raw, TripDocument):
        raw = raw.to_document()
    doc = migrate_raw(raw)
    try:
        return TripDocument.from_document(doc)
    except ValidationError as exc:
        raise CorruptDocumentError(doc.get("id"), str(exc)) from exc


# ------------------------------------------------------------------
# Views served to the travel editor and the cost tracker
# ------------------------------------------------------------------


def extract_travel_view(doc: TripDocument) -> dict[str, Any]:
    """Project a trip into the travel editor's payload shape."""
    data = doc.to_document()
    travel = data.get("travelData", {})
    view: dict[str, Any] = {
        "id": doc.id,
        "title": doc.title,
        "description": doc.description,
        "startDate": doc.start_date,
        "endDate": doc.end_date,
        "locations": travel.get("locations", []),
        "routes": travel.get("routes", []),
        "accommodations": data.get("accommodations", []),
        "createdAt": data["createdAt"],
        "updatedAt": data["updatedAt"],
    }
    if doc.instagram_username:
        view["instagramUsername"] = doc.instagram_username
    return view


def extract_cost_view(doc: TripDocument) -> dict[str, Any] | None:
    """Project a trip into the cost tracker's payload shape, if it has cost data."""
    if doc.cost_data is None:
        return None
    data = doc.to_document()
    cost = data["costData"]
    return {
        "id": f"cost-{doc.id}",
        "tripId": doc.id,
        "tripTitle": doc.title,
        "tripStartDate": doc.start_date,
        "tripEndDate": doc.end_date,
        **cost,
        "createdAt": data["createdAt"],
        "updatedAt": data["updatedAt"],
    }
