# progress_hub/schemas/common.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from progress_hub.core.utils import ensure_utc


class CollectionKind(str, Enum):
    """
    The five top-level collections. Values double as JSON document keys and
    as the `kind` parameter sent to every persistence backend.
    """

    STAFF = "staff"
    TASKS = "tasks"
    MEETINGS = "meetings"
    REPORTS = "reports"
    SHIFTS = "shifts"


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """
    Base for every wire-facing model.

    Python code uses snake_case attributes while persisted documents and
    HTTP payloads use camelCase keys; both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        """JSON-shaped dict with camelCase keys and ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)


class EntityBase(CamelModel):
    """
    Fields the store assigns on `add` and refreshes on `update`.
    """

    id: str = Field(..., description="Unique identifier generated by the store.")
    created_at: UtcDatetime = Field(..., description="Creation timestamp (UTC).")
    updated_at: UtcDatetime = Field(..., description="Last modification timestamp (UTC).")
