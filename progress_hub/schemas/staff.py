# progress_hub/schemas/staff.py

from __future__ import annotations

from pydantic import Field, model_validator

from progress_hub.schemas.common import CamelModel, EntityBase, UtcDatetime


class AssignmentPeriod(CamelModel):
    """
    Period during which a staff member is placed at their current client.
    A missing `end` means the assignment is ongoing.
    """

    start: UtcDatetime = Field(..., description="Assignment start.")
    end: UtcDatetime | None = Field(
        default=None,
        description="Assignment end; null while the assignment is ongoing.",
    )

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "AssignmentPeriod":
        if self.end is not None and self.end < self.start:
            raise ValueError("assignmentPeriod.end must be greater than or equal to start")
        return self


class AssignmentPeriodPatch(CamelModel):
    start: UtcDatetime | None = None
    end: UtcDatetime | None = None


class Contact(CamelModel):
    email: str | None = Field(default=None, examples=["hanako@example.com"])
    phone: str | None = Field(default=None, examples=["090-1234-5678"])


# --------------------------------------------------------------------------
# Draft schema (add)
# --------------------------------------------------------------------------

class StaffDraft(CamelModel):
    """
    Fields supplied by the caller when registering a staff member.
    """

    name: str = Field(..., min_length=1, examples=["Hanako Sato"])
    current_client: str = Field(
        default="",
        description="Client the staff member is currently assigned to.",
        examples=["Acme Corp"],
    )
    assignment_period: AssignmentPeriod
    contact: Contact = Field(default_factory=Contact)
    daily_report_url: str | None = Field(
        default=None,
        description="External document where the staff member files daily reports.",
    )
    daily_report_last_updated: UtcDatetime | None = None
    profile_image: str | None = None


# --------------------------------------------------------------------------
# Patch schema (update)
# --------------------------------------------------------------------------

class StaffPatch(CamelModel):
    """
    All fields optional; nested `assignmentPeriod` and `contact` are merged
    key by key so that sibling fields survive a partial update.
    """

    name: str | None = Field(default=None, min_length=1)
    current_client: str | None = None
    assignment_period: AssignmentPeriodPatch | None = None
    contact: Contact | None = None
    daily_report_url: str | None = None
    daily_report_last_updated: UtcDatetime | None = None
    profile_image: str | None = None


class StaffMember(EntityBase, StaffDraft):
    """
    Stored representation of a staff member.
    """
