from __future__ import annotations

from datetime import date

from fastapi import HTTPException, Query

from helpdesk.models.ticket import ComplaintTicket
from helpdesk.schemas.common import CustomerCategory, IssuePriority, TicketStatus, UserRole
from helpdesk.schemas.ticket import ComplaintTicketOut
from helpdesk.services.ticket_query import TicketQuery


def as_ticket_out(ticket: ComplaintTicket) -> ComplaintTicketOut:
    return ComplaintTicketOut(
        id=ticket.id,
        customer_id=ticket.customer_id,
        customer_name=ticket.customer_name,
        customer_address=ticket.customer_address,
        customer_category=ticket.customer_category,
        issue_description=ticket.issue_description,
        issue_priority=ticket.issue_priority,
        status=ticket.status,
        created_by=ticket.created_by,
        assigned_to=ticket.assigned_to,
        assigned_team=ticket.assigned_team,
        resolution_notes=ticket.resolution_notes,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        resolved_at=ticket.resolved_at,
    )


def check_date_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")


def ticket_filters(
    status: TicketStatus | None = Query(default=None),
    priority: IssuePriority | None = Query(default=None),
    assigned_team: UserRole | None = Query(default=None),
    assigned_to: int | None = Query(default=None, ge=1),
    customer_category: CustomerCategory | None = Query(default=None),
    created_by: int | None = Query(default=None, ge=1),
    customer_id: str | None = Query(default=None, max_length=100),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> TicketQuery:
    check_date_range(start_date, end_date)
    return TicketQuery(
        status=status,
        priority=priority,
        assigned_team=assigned_team,
        assigned_to=assigned_to,
        customer_category=customer_category,
        created_by=created_by,
        customer_id=(customer_id or "").strip() or None,
        start=start_date,
        end=end_date,
    )
