"""Trip boundary validation — referential integrity inside one trip document.

Pure functions: nothing here mutates a document or raises. Callers decide
whether an invalid result rejects a write or is only reported.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator

from journal.contracts.enums import ValidationErrorType
from journal.contracts.trip import Accommodation, Location, TravelRoute, TripDocument
from journal.contracts.validation import ValidationIssue, ValidationResult

TravelItem = Location | TravelRoute | Accommodation


def iter_travel_items(doc: TripDocument) -> Iterator[tuple[str, TravelItem]]:
    """Yield ``(kind, item)`` for every item that can carry cost-tracking links."""
    for location in doc.travel_data.locations:
        yield "location", location
    for route in doc.iter_routes():
        yield "route", route
    for accommodation in doc.accommodations:
        yield "accommodation", accommodation


# ------------------------------------------------------------------
# Individual checks
# ------------------------------------------------------------------


def _dangling_expense_links(doc: TripDocument) -> list[ValidationIssue]:
    expense_ids = doc.expense_ids()
    issues = []
    for kind, item in iter_travel_items(doc):
        for link in item.cost_tracking_links:
            if link.expense_id not in expense_ids:
                issues.append(ValidationIssue(
                    type=ValidationErrorType.EXPENSE_NOT_FOUND,
                    message=f"Expense {link.expense_id} linked from {kind} {item.id} "
                            f"not found in trip {doc.id}",
                    item_id=item.id,
                    expense_id=link.expense_id,
                ))
    return issues


def _unresolved_accommodation_locations(doc: TripDocument) -> list[ValidationIssue]:
    location_ids = doc.location_ids()
    return [
        ValidationIssue(
            type=ValidationErrorType.LOCATION_NOT_FOUND,
            message=f"Location {acc.location_id} of accommodation {acc.id} "
                    f"not found in trip {doc.id}",
            item_id=acc.id,
            location_id=acc.location_id,
        )
        for acc in doc.accommodations
        if acc.location_id not in location_ids
    ]


def _duplicates(collection: str, ids: Iterable[str]) -> list[ValidationIssue]:
    counts = Counter(ids)
    return [
        ValidationIssue(
            type=ValidationErrorType.DUPLICATE_ID,
            message=f"Id {item_id} appears {count} times in {collection}",
            item_id=item_id,
            collection=collection,
        )
        for item_id, count in counts.items()
        if count > 1
    ]


def _duplicate_ids(doc: TripDocument) -> list[ValidationIssue]:
    issues = _duplicates("locations", (l.id for l in doc.travel_data.locations))
    issues += _duplicates("routes", (r.id for r in doc.iter_routes()))
    issues += _duplicates("accommodations", (a.id for a in doc.accommodations))
    if doc.cost_data is not None:
        issues += _duplicates("expenses", (e.id for e in doc.cost_data.expenses))
        issues += _duplicates(
            "countryBudgets", (b.id for b in doc.cost_data.country_budgets)
        )
    return issues


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def validate(doc: TripDocument) -> ValidationResult:
    """Check every cross-reference and id uniqueness of a full document."""
    errors = _dangling_expense_links(doc)
    errors += _unresolved_accommodation_locations(doc)
    errors += _duplicate_ids(doc)
    return ValidationResult(errors=errors)


def expense_exists(expense_id: str, doc: TripDocument) -> bool:
    return expense_id in doc.expense_ids()


def find_travel_item(item_id: str, doc: TripDocument) -> TravelItem | None:
    for _, item in iter_travel_items(doc):
        if item.id == item_id:
            return item
    return None


def all_travel_item_ids(doc: TripDocument) -> list[str]:
    return [item.id for _, item in iter_travel_items(doc)]


def validate_trip_boundary(
    expense_id: str, item_id: str, doc: TripDocument
) -> ValidationResult:
    """Check that an expense and a travel item both belong to *doc*.

    Used before linking the two, so a link never crosses trips.
    """
    errors = []
    if not expense_exists(expense_id, doc):
        errors.append(ValidationIssue(
            type=ValidationErrorType.EXPENSE_NOT_FOUND,
            message=f"Expense {expense_id} not found in trip {doc.id}",
            expense_id=expense_id,
        ))
    if find_travel_item(item_id, doc) is None:
        errors.append(ValidationIssue(
            type=ValidationErrorType.TRAVEL_ITEM_NOT_FOUND,
            message=f"Travel item {item_id} not found in trip {doc.id}",
            item_id=item_id,
        ))
    return ValidationResult(errors=errors)
