from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.api.v1.deps import as_ticket_out, ticket_filters
from helpdesk.db.session import get_db
from helpdesk.schemas.ticket import (
    ComplaintTicketCreateIn,
    ComplaintTicketOut,
    ComplaintTicketUpdateIn,
    TicketAssignIn,
    TicketHistoryCreateIn,
    TicketHistoryOut,
    TicketTransferIn,
)
from helpdesk.services import history as history_service
from helpdesk.services import tickets as ticket_service
from helpdesk.services.auth import AuthUser, get_current_user
from helpdesk.services.ticket_query import TicketQuery

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", response_model=ComplaintTicketOut, status_code=201)
async def create_ticket(
    payload: ComplaintTicketCreateIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ComplaintTicketOut:
    ticket = await ticket_service.create_complaint_ticket(db, payload, created_by=current_user.user_id)
    return as_ticket_out(ticket)


@router.get("", response_model=list[ComplaintTicketOut])
async def list_tickets(
    query: TicketQuery = Depends(ticket_filters),
    db: AsyncSession = Depends(get_db),
) -> list[ComplaintTicketOut]:
    return [as_ticket_out(t) for t in await ticket_service.get_complaint_tickets(db, query)]


@router.get("/team/{team}", response_model=list[ComplaintTicketOut])
async def list_team_tickets(team: str, db: AsyncSession = Depends(get_db)) -> list[ComplaintTicketOut]:
    return [as_ticket_out(t) for t in await ticket_service.get_tickets_by_team(db, team)]


@router.get("/assignee/{user_id}", response_model=list[ComplaintTicketOut])
async def list_assignee_tickets(user_id: int, db: AsyncSession = Depends(get_db)) -> list[ComplaintTicketOut]:
    return [as_ticket_out(t) for t in await ticket_service.get_tickets_by_assignee(db, user_id)]


@router.get("/{ticket_id}", response_model=ComplaintTicketOut)
async def get_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> ComplaintTicketOut:
    ticket = await ticket_service.get_complaint_ticket_by_id(db, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return as_ticket_out(ticket)


@router.patch("/{ticket_id}", response_model=ComplaintTicketOut)
async def update_ticket(
    ticket_id: int,
    payload: ComplaintTicketUpdateIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ComplaintTicketOut:
    ticket = await ticket_service.update_complaint_ticket(db, ticket_id, payload, performed_by=current_user.user_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return as_ticket_out(ticket)


@router.post("/{ticket_id}/assign", response_model=ComplaintTicketOut)
async def assign_ticket(
    ticket_id: int,
    payload: TicketAssignIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ComplaintTicketOut:
    ticket = await ticket_service.assign_ticket(
        db,
        ticket_id,
        assigned_to=payload.assigned_to,
        assigned_team=payload.assigned_team,
        assigned_by=current_user.user_id,
    )
    return as_ticket_out(ticket)


@router.post("/{ticket_id}/transfer", response_model=ComplaintTicketOut)
async def transfer_ticket(
    ticket_id: int,
    payload: TicketTransferIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> ComplaintTicketOut:
    ticket = await ticket_service.transfer_ticket_to_team(
        db,
        ticket_id,
        target_team=payload.target_team.strip(),
        transferred_by=current_user.user_id,
    )
    return as_ticket_out(ticket)


@router.get("/{ticket_id}/history", response_model=list[TicketHistoryOut])
async def ticket_history(ticket_id: int, db: AsyncSession = Depends(get_db)) -> list[TicketHistoryOut]:
    return await history_service.get_ticket_history(db, ticket_id)


@router.post("/{ticket_id}/history", response_model=TicketHistoryOut, status_code=201)
async def add_ticket_history(
    ticket_id: int,
    payload: TicketHistoryCreateIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> TicketHistoryOut:
    entry = await history_service.create_ticket_history(db, ticket_id, payload, performed_by=current_user.user_id)
    return history_service.as_history_out(entry, current_user.full_name or current_user.username)
