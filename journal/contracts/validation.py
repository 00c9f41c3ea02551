"""Validation report returned by the boundary validator."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from journal.contracts.enums import ValidationErrorType


class ValidationIssue(BaseModel):
    """One referential-integrity violation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ValidationErrorType = Field(..., description="Machine-readable error kind")
    message: str = Field(..., description="Human-readable error message")
    item_id: str | None = Field(default=None, description="Travel item carrying the reference")
    expense_id: str | None = None
    location_id: str | None = None
    collection: str | None = None


class ValidationResult(BaseModel):
    """Outcome of validating a whole trip document.

    ``is_valid`` is derived from ``errors``; callers decide whether an invalid
    result rejects a write or is merely reported.
    """

    errors: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def of_type(self, kind: ValidationErrorType) -> list[ValidationIssue]:
        return [e for e in self.errors if e.type == kind]

    def to_report(self) -> dict:
        return {
            "isValid": self.is_valid,
            "errors": [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in self.errors],
        }
