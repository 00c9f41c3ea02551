"""Cost tracking data — budgets, expenses and YNAB import state.

Stored inside the trip document under ``costData``.
"""

from pydantic import Field

from journal.contracts.common import DocumentModel, TrackedEntity
from journal.contracts.enums import ExpenseType, TravelReferenceType, YnabMappingType


class CountryPeriod(DocumentModel):
    """A date range spent in a budgeted country."""

    id: str
    start_date: str
    end_date: str
    notes: str | None = None


class BudgetItem(TrackedEntity):
    """Budget allocated to one country, optionally tied to travel periods."""

    country: str
    amount: float | None = Field(
        default=None, description="Undefined budgets have no amount yet"
    )
    currency: str = "EUR"
    notes: str | None = None
    periods: list[CountryPeriod] = Field(default_factory=list)


class TravelReference(DocumentModel):
    """Back-reference from an expense to the travel item it paid for."""

    type: TravelReferenceType
    location_id: str | None = None
    accommodation_id: str | None = None
    route_id: str | None = None
    description: str | None = None


class Expense(TrackedEntity):
    """A single expense. Negative ``amount`` denotes a refund."""

    date: str | None = None
    amount: float
    currency: str = "EUR"
    category: str = ""
    country: str | None = None
    description: str = ""
    notes: str | None = None
    is_general_expense: bool = False
    expense_type: ExpenseType = ExpenseType.ACTUAL
    original_planned_id: str | None = Field(
        default=None, description="Planned expense this actual expense settles"
    )
    travel_reference: TravelReference | None = None

    @property
    def is_refund(self) -> bool:
        return self.amount < 0


class YnabCategoryMapping(DocumentModel):
    ynab_category: str
    mapping_type: YnabMappingType
    country_name: str | None = None


class YnabImportData(DocumentModel):
    mappings: list[YnabCategoryMapping] = Field(default_factory=list)
    imported_transaction_hashes: list[str] = Field(default_factory=list)


class CostData(DocumentModel):
    """Budgets and expenses of a trip."""

    overall_budget: float = 0
    reserved_budget: float | None = None
    currency: str = "EUR"
    country_budgets: list[BudgetItem] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    custom_categories: list[str] | None = None
    ynab_import_data: YnabImportData | None = None

    def expense_ids(self) -> set[str]:
        return {e.id for e in self.expenses}
