"""Partial-update payloads — one tagged variant per UI write path.

Every collection field is optional. ``None`` (omitted) and ``[]`` both mean
"no change offered": collections are reconciled by id and never cleared by an
update. Entries are removed only through :class:`RemoveItemsPatch`.
"""

from pydantic import ConfigDict, Field

from journal.contracts.common import Coordinates, DocumentModel
from journal.contracts.cost import BudgetItem, CostData, Expense, YnabImportData
from journal.contracts.enums import TripCollection
from journal.contracts.trip import Accommodation, Location, TravelRoute


class PatchModel(DocumentModel):
    # UI payloads carry echoes of read-only fields (id, createdAt, ...)
    model_config = ConfigDict(extra="ignore")


class TravelDataPatch(PatchModel):
    """Sent by the travel itinerary editor and its autosave timer."""

    title: str | None = None
    description: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    instagram_username: str | None = None
    locations: list[Location] | None = None
    routes: list[TravelRoute] | None = None
    accommodations: list[Accommodation] | None = None


class CostDataPatch(PatchModel):
    """Sent by the cost tracker. Trip metadata uses the cost tracker's names."""

    trip_title: str | None = None
    trip_start_date: str | None = None
    trip_end_date: str | None = None
    overall_budget: float | None = None
    reserved_budget: float | None = None
    currency: str | None = None
    custom_categories: list[str] | None = None
    country_budgets: list[BudgetItem] | None = None
    expenses: list[Expense] | None = None
    ynab_import_data: YnabImportData | None = None
    accommodations: list[Accommodation] | None = None


class RoutePointsUpdate(PatchModel):
    route_id: str = Field(..., min_length=1)
    route_points: list[Coordinates]


class BatchRoutePatch(PatchModel):
    """Bulk route-point recomputation. Touches nothing but ``routePoints``."""

    updates: list[RoutePointsUpdate] = Field(default_factory=list)


class RemoveItemsPatch(PatchModel):
    """Explicit deletion: keep only ``remaining_ids`` in ``collection``."""

    collection: TripCollection
    remaining_ids: list[str]


class NewTripPayload(TravelDataPatch):
    """Body of a trip creation request: a new document without an id."""

    cost_data: CostData | None = None


class TripPatchRequest(PatchModel):
    """``PATCH /api/travel-data`` body: either or both patch kinds."""

    batch_route_update: list[RoutePointsUpdate] | None = None
    remove_items: RemoveItemsPatch | None = None


class ExpenseLinkRequest(PatchModel):
    expense_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    description: str | None = None
