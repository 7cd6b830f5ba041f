from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from helpdesk.schemas.common import CustomerCategory, IssuePriority, TicketStatus, UserRole, reject_explicit_nulls


class ComplaintTicketCreateIn(BaseModel):
    customer_id: str = Field(min_length=1, max_length=100)
    customer_name: str = Field(min_length=1, max_length=255)
    customer_address: str = Field(min_length=1)
    customer_category: CustomerCategory
    issue_description: str = Field(min_length=1)
    issue_priority: IssuePriority


class ComplaintTicketUpdateIn(BaseModel):
    """Partial update; only fields explicitly sent are considered."""

    customer_id: str | None = Field(default=None, min_length=1, max_length=100)
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)
    customer_address: str | None = Field(default=None, min_length=1)
    customer_category: CustomerCategory | None = None
    issue_description: str | None = Field(default=None, min_length=1)
    issue_priority: IssuePriority | None = None
    status: TicketStatus | None = None
    assigned_to: int | None = None
    assigned_team: UserRole | None = None
    resolution_notes: str | None = None

    @model_validator(mode="after")
    def _no_null_required_fields(self) -> "ComplaintTicketUpdateIn":
        return reject_explicit_nulls(
            self,
            (
                "customer_id",
                "customer_name",
                "customer_address",
                "customer_category",
                "issue_description",
                "issue_priority",
                "status",
            ),
        )


class TicketAssignIn(BaseModel):
    assigned_to: int | None = None
    assigned_team: UserRole


class TicketTransferIn(BaseModel):
    # Unknown teams are rejected by the transfer operation.
    target_team: str = Field(min_length=1, max_length=20)


class ComplaintTicketOut(BaseModel):
    id: int
    customer_id: str
    customer_name: str
    customer_address: str
    customer_category: CustomerCategory
    issue_description: str
    issue_priority: IssuePriority
    status: TicketStatus
    created_by: int
    assigned_to: int | None = None
    assigned_team: UserRole | None = None
    resolution_notes: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None


class TicketHistoryCreateIn(BaseModel):
    action: str = Field(min_length=1, max_length=100)
    previous_value: str | None = None
    new_value: str | None = None
    notes: str | None = Field(default=None, max_length=6000)


class TicketHistoryOut(BaseModel):
    id: int
    ticket_id: int
    action: str
    previous_value: str | None = None
    new_value: str | None = None
    performed_by: int
    performed_by_name: str | None = None
    notes: str | None = None
    created_at: datetime
