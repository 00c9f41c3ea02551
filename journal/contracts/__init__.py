"""Travel journal data contracts — Pydantic v2 models for trip documents.

Data authority
--------------

**Trip file** (source of truth, one JSON document per trip):
- ``TripDocument`` — ``{data_dir}/trip-{id}.json``
- ``Location`` / ``TravelRoute`` — ``travelData.locations`` / ``travelData.routes``
- ``Accommodation`` — ``accommodations`` (referenced from locations by id)
- ``CostData`` / ``Expense`` / ``BudgetItem`` — ``costData``

**Backup directory**:
- ``BackupRecord`` — ``{backup_dir}/backup-metadata.json``

Calculated (never persisted)
----------------------------
- ``TripSummary`` — list view entry
- ``ValidationResult`` — boundary validation report
- Patch payloads (``TravelDataPatch``, ``CostDataPatch``, ``BatchRoutePatch``,
  ``RemoveItemsPatch``) — partial updates sent by the UI
"""

from journal.contracts.enums import (
    ExpenseType,
    TransportType,
    TravelReferenceType,
    TripCollection,
    ValidationErrorType,
    YnabMappingType,
)
from journal.contracts.common import DocumentModel, TrackedEntity
from journal.contracts.cost import (
    BudgetItem,
    CostData,
    CountryPeriod,
    Expense,
    TravelReference,
    YnabCategoryMapping,
    YnabImportData,
)
from journal.contracts.trip import (
    Accommodation,
    CostTrackingLink,
    Location,
    TravelData,
    TravelRoute,
    TripDocument,
    TripSummary,
)
from journal.contracts.patches import (
    BatchRoutePatch,
    CostDataPatch,
    ExpenseLinkRequest,
    NewTripPayload,
    RemoveItemsPatch,
    RoutePointsUpdate,
    TravelDataPatch,
    TripPatchRequest,
)
from journal.contracts.validation import ValidationIssue, ValidationResult
from journal.contracts.backup import BackupRecord

__all__ = [
    # Enums
    "ExpenseType",
    "TransportType",
    "TravelReferenceType",
    "TripCollection",
    "ValidationErrorType",
    "YnabMappingType",
    # Common
    "DocumentModel",
    "TrackedEntity",
    # Cost
    "BudgetItem",
    "CostData",
    "CountryPeriod",
    "Expense",
    "TravelReference",
    "YnabCategoryMapping",
    "YnabImportData",
    # Trip
    "Accommodation",
    "CostTrackingLink",
    "Location",
    "TravelData",
    "TravelRoute",
    "TripDocument",
    "TripSummary",
    # Patches
    "BatchRoutePatch",
    "CostDataPatch",
    "ExpenseLinkRequest",
    "NewTripPayload",
    "RemoveItemsPatch",
    "RoutePointsUpdate",
    "TravelDataPatch",
    "TripPatchRequest",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Backups
    "BackupRecord",
]
