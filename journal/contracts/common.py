"""Base classes and shared types for travel journal contracts.

Conventions (all contracts and API payloads):
- **Field names**: snake_case in Python, camelCase on disk and over HTTP
  (both forms are accepted on input)
- **Timestamps**: always UTC, ISO 8601 in serialized form; naive inputs are
  assumed to be UTC
- **Calendar dates**: ISO 8601 strings, stored verbatim
- **Coordinates**: WGS84 decimal degrees, ``[latitude, longitude]``
- **Amounts**: signed floats in the trip currency (negative = refund)

Entities keep fields they do not declare, so a document written by a newer UI
survives a load/save cycle through this code untouched.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]

Coordinates = tuple[float, float]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class DocumentModel(BaseModel):
    """Base model with trip-document friendly serialization.

    - Enums serialize as string values.
    - ``to_document()`` produces a JSON-safe camelCase dict (datetimes as ISO 8601).
    - ``from_document()`` hydrates from a decoded JSON dict.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="allow",
    )

    def to_document(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "DocumentModel":
        """Create model instance from a decoded JSON dict."""
        return cls.model_validate(data)


class TrackedEntity(DocumentModel):
    """An entity living in one of the document's id-keyed collections."""

    id: str
    updated_at: UtcDatetime | None = None
