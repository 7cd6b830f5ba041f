from __future__ import annotations

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import NotFoundError
from helpdesk.models.ticket import ComplaintTicket, TicketHistory
from helpdesk.models.user import User
from helpdesk.schemas.ticket import TicketHistoryCreateIn, TicketHistoryOut
from helpdesk.services.users import require_user


logger = logging.getLogger(__name__)


def append_history(
    db: AsyncSession,
    ticket_id: int,
    action: str,
    performed_by: int,
    previous_value: str | None = None,
    new_value: str | None = None,
    notes: str | None = None,
) -> TicketHistory:
    """Stage a history row in the caller's transaction. Rows are never updated afterwards."""
    entry = TicketHistory(
        ticket_id=ticket_id,
        action=action,
        previous_value=previous_value,
        new_value=new_value,
        performed_by=performed_by,
        notes=notes,
    )
    db.add(entry)
    return entry


async def create_ticket_history(
    db: AsyncSession,
    ticket_id: int,
    payload: TicketHistoryCreateIn,
    performed_by: int,
) -> TicketHistory:
    ticket = await db.get(ComplaintTicket, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket", ticket_id)
    await require_user(db, performed_by)

    entry = append_history(
        db,
        ticket_id=ticket_id,
        action=payload.action.strip(),
        performed_by=performed_by,
        previous_value=payload.previous_value,
        new_value=payload.new_value,
        notes=payload.notes,
    )
    try:
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(entry)
    logger.info("Manual history entry ticket_id=%s action=%s performed_by=%s", ticket_id, entry.action, performed_by)
    return entry


def as_history_out(entry: TicketHistory, performer_name: str | None = None) -> TicketHistoryOut:
    return TicketHistoryOut(
        id=entry.id,
        ticket_id=entry.ticket_id,
        action=entry.action,
        previous_value=entry.previous_value,
        new_value=entry.new_value,
        performed_by=entry.performed_by,
        performed_by_name=performer_name,
        notes=entry.notes,
        created_at=entry.created_at,
    )


async def get_ticket_history(db: AsyncSession, ticket_id: int) -> list[TicketHistoryOut]:
    rows = (
        await db.execute(
            select(TicketHistory, User)
            .outerjoin(User, User.id == TicketHistory.performed_by)
            .where(TicketHistory.ticket_id == ticket_id)
            .order_by(desc(TicketHistory.created_at), desc(TicketHistory.id))
        )
    ).all()
    return [as_history_out(entry, performer.display_name if performer else None) for entry, performer in rows]
