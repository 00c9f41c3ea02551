"""Enumerations shared across all travel journal contracts."""

from enum import Enum


class TransportType(str, Enum):
    """How a route segment is travelled."""
    WALK = "walk"
    BIKE = "bike"
    CAR = "car"
    BUS = "bus"
    TRAIN = "train"
    PLANE = "plane"
    FERRY = "ferry"
    BOAT = "boat"
    METRO = "metro"
    OTHER = "other"


class ExpenseType(str, Enum):
    """Whether an expense has been paid or is only budgeted."""
    ACTUAL = "actual"
    PLANNED = "planned"


class TravelReferenceType(str, Enum):
    LOCATION = "location"
    ACCOMMODATION = "accommodation"
    ROUTE = "route"


class YnabMappingType(str, Enum):
    COUNTRY = "country"
    GENERAL = "general"
    NONE = "none"


class ValidationErrorType(str, Enum):
    """Kinds of referential-integrity violations in a trip document."""
    EXPENSE_NOT_FOUND = "EXPENSE_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    TRAVEL_ITEM_NOT_FOUND = "TRAVEL_ITEM_NOT_FOUND"
    DUPLICATE_ID = "DUPLICATE_ID"


class TripCollection(str, Enum):
    """Id-keyed collections of a trip document that accept explicit removals."""
    LOCATIONS = "locations"
    ROUTES = "routes"
    ACCOMMODATIONS = "accommodations"
    EXPENSES = "expenses"
    COUNTRY_BUDGETS = "countryBudgets"
