"""Builders for trip documents used across the test suite."""

from __future__ import annotations

from datetime import datetime, timezone

from journal.contracts.cost import CostData, Expense
from journal.contracts.trip import (
    Accommodation,
    CostTrackingLink,
    Location,
    TravelData,
    TravelRoute,
    TripDocument,
)
from journal.persistence.migrations import CURRENT_SCHEMA_VERSION

LONDON = (51.5074, -0.1278)
PARIS = (48.8566, 2.3522)
CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_location(loc_id: str = "loc-1", name: str = "London", **kwargs) -> Location:
    kwargs.setdefault("coordinates", LONDON)
    kwargs.setdefault("date", "2024-06-01")
    return Location(id=loc_id, name=name, **kwargs)


def make_route(route_id: str = "route-1", points: int = 0, **kwargs) -> TravelRoute:
    kwargs.setdefault("from_location", "London")
    kwargs.setdefault("to", "Paris")
    kwargs.setdefault("from_coordinates", LONDON)
    kwargs.setdefault("to_coordinates", PARIS)
    kwargs.setdefault("transport_type", "train")
    if points:
        kwargs["route_points"] = [
            (LONDON[0] + (PARIS[0] - LONDON[0]) * i / (points - 1),
             LONDON[1] + (PARIS[1] - LONDON[1]) * i / (points - 1))
            for i in range(points)
        ]
    return TravelRoute(id=route_id, **kwargs)


def make_accommodation(
    acc_id: str = "acc-a", location_id: str = "loc-1", **kwargs
) -> Accommodation:
    kwargs.setdefault("name", f"Hotel {acc_id}")
    kwargs.setdefault("created_at", CREATED)
    return Accommodation(id=acc_id, location_id=location_id, **kwargs)


def make_expense(expense_id: str = "exp-1", amount: float = 42.0, **kwargs) -> Expense:
    kwargs.setdefault("date", "2024-06-01")
    kwargs.setdefault("category", "Food")
    kwargs.setdefault("description", f"Expense {expense_id}")
    return Expense(id=expense_id, amount=amount, **kwargs)


def link(expense_id: str) -> CostTrackingLink:
    return CostTrackingLink(expense_id=expense_id)


def make_trip(
    trip_id: str = "trip-london-paris",
    locations: list[Location] | None = None,
    routes: list[TravelRoute] | None = None,
    accommodations: list[Accommodation] | None = None,
    expenses: list[Expense] | None = None,
    **kwargs,
) -> TripDocument:
    """A valid current-version trip. ``expenses`` creates ``cost_data``."""
    if locations is None:
        locations = [
            make_location("loc-1", "London"),
            make_location("loc-2", "Paris", coordinates=PARIS, date="2024-06-03"),
        ]
    kwargs.setdefault("title", "London to Paris")
    kwargs.setdefault("start_date", "2024-06-01")
    kwargs.setdefault("end_date", "2024-06-05")
    kwargs.setdefault("created_at", CREATED)
    kwargs.setdefault("updated_at", CREATED)
    if expenses is not None:
        kwargs.setdefault("cost_data", CostData(overall_budget=1000, expenses=expenses))
    return TripDocument(
        schema_version=CURRENT_SCHEMA_VERSION,
        id=trip_id,
        travel_data=TravelData(locations=locations, routes=routes or []),
        accommodations=accommodations or [],
        **kwargs,
    )
