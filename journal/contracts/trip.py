"""TripDocument — the unified per-trip aggregate and its travel entities.

Persisted at: ``{data_dir}/trip-{trip_id}.json``

Accommodations are standalone entities referenced from locations by id
(``Location.accommodation_ids``): a relation plus lookup, never ownership.
"""

from collections.abc import Iterator
from typing import Self

from pydantic import Field, model_validator

from journal.contracts.common import (
    Coordinates,
    DocumentModel,
    TrackedEntity,
    UtcDatetime,
    utc_now,
)
from journal.contracts.cost import CostData
from journal.contracts.enums import TransportType


class CostTrackingLink(DocumentModel):
    """Link from a travel item to an expense of the same trip."""

    expense_id: str = Field(..., min_length=1)
    description: str | None = None


class Location(TrackedEntity):
    """A stop on the trip."""

    name: str = ""
    coordinates: Coordinates
    date: str | None = None
    end_date: str | None = None
    arrival_time: str | None = None
    departure_time: str | None = None
    notes: str | None = None
    accommodation_ids: list[str] = Field(default_factory=list)
    cost_tracking_links: list[CostTrackingLink] = Field(default_factory=list)


class TravelRoute(TrackedEntity):
    """A route segment between two locations.

    ``route_points`` are supplied by an external routing service and are
    treated as an opaque ``[lat, lng]`` sequence. When absent, the segment is
    drawn as a straight line between its endpoints.
    """

    from_location: str = Field(default="", alias="from")
    to: str = ""
    from_coordinates: Coordinates | None = None
    to_coordinates: Coordinates | None = None
    transport_type: TransportType = TransportType.OTHER
    departure_time: str | None = None
    arrival_time: str | None = None
    distance: float | None = Field(default=None, ge=0, description="Kilometers")
    route_points: list[Coordinates] | None = None
    sub_routes: list["TravelRoute"] | None = None
    private_notes: str | None = None
    cost_tracking_links: list[CostTrackingLink] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_single_nesting(self) -> Self:
        for sub in self.sub_routes or []:
            if sub.sub_routes:
                raise ValueError(
                    f"Sub-route {sub.id} of route {self.id} may not have sub-routes"
                )
        return self

    def effective_points(self) -> list[Coordinates]:
        """Route points, falling back to a two-point straight line."""
        if self.route_points:
            return list(self.route_points)
        return [p for p in (self.from_coordinates, self.to_coordinates) if p is not None]


class Accommodation(TrackedEntity):
    """A place to stay, bound to exactly one location."""

    name: str = ""
    location_id: str
    accommodation_data: str | None = Field(
        default=None, description="YAML frontmatter or free text"
    )
    is_accommodation_public: bool = False
    cost_tracking_links: list[CostTrackingLink] = Field(default_factory=list)
    created_at: UtcDatetime = Field(default_factory=utc_now)


class TravelData(DocumentModel):
    locations: list[Location] = Field(default_factory=list)
    routes: list[TravelRoute] = Field(default_factory=list)


class TripDocument(DocumentModel):
    """The root aggregate: one trip, one file.

    ``schema_version`` always equals the code's current target after a save;
    migrations are applied eagerly on load.
    """

    schema_version: int = Field(..., ge=1)
    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    start_date: str | None = None
    end_date: str | None = None
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)
    instagram_username: str | None = None

    travel_data: TravelData = Field(default_factory=TravelData)
    accommodations: list[Accommodation] = Field(default_factory=list)
    cost_data: CostData | None = None

    def iter_routes(self) -> Iterator[TravelRoute]:
        """Yield every route, sub-routes right after their parent."""
        for route in self.travel_data.routes:
            yield route
            yield from route.sub_routes or []

    def location_ids(self) -> set[str]:
        return {loc.id for loc in self.travel_data.locations}

    def expense_ids(self) -> set[str]:
        return self.cost_data.expense_ids() if self.cost_data else set()

    def summary(self) -> "TripSummary":
        return TripSummary(
            id=self.id,
            title=self.title,
            start_date=self.start_date,
            end_date=self.end_date,
            created_at=self.created_at,
            updated_at=self.updated_at,
            has_travel=bool(self.travel_data.locations or self.travel_data.routes),
            has_cost=self.cost_data is not None,
        )


class TripSummary(DocumentModel):
    """Lightweight listing entry, never persisted on its own."""

    id: str
    title: str
    start_date: str | None = None
    end_date: str | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime | None = None
    has_travel: bool = False
    has_cost: bool = False
