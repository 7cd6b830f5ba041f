from __future__ import annotations

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import InvalidArgumentError, InvalidAssignmentError, NotFoundError
from helpdesk.models.common import utcnow
from helpdesk.models.ticket import STATUS_NEW, STATUS_SOLVED, ComplaintTicket
from helpdesk.models.user import USER_ROLES, User
from helpdesk.schemas.ticket import ComplaintTicketCreateIn, ComplaintTicketUpdateIn
from helpdesk.services.history import append_history
from helpdesk.services.ticket_query import TicketQuery
from helpdesk.services.users import require_active_user, require_user


logger = logging.getLogger(__name__)

# (attribute, display name) pairs; history action is "<display name lower>_changed".
TRACKED_FIELDS: tuple[tuple[str, str], ...] = (
    ("customer_id", "Customer ID"),
    ("customer_name", "Customer Name"),
    ("customer_address", "Customer Address"),
    ("customer_category", "Customer Category"),
    ("issue_description", "Issue Description"),
    ("issue_priority", "Issue Priority"),
    ("status", "Status"),
    ("assigned_to", "Assigned To"),
    ("assigned_team", "Assigned Team"),
    ("resolution_notes", "Resolution Notes"),
)

# Free-text fields trimmed on both create and update.
STRIPPED_FIELDS = ("customer_id", "customer_name", "customer_address", "issue_description")


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def encode_assignment(assigned_to: int | None, assigned_team: str | None) -> str | None:
    if assigned_to is not None:
        return f"User ID: {assigned_to}, Team: {assigned_team}"
    if assigned_team is not None:
        return f"Team: {assigned_team}"
    return None


async def _commit(db: AsyncSession, ticket: ComplaintTicket) -> ComplaintTicket:
    ticket_id = ticket.id
    try:
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Ticket write failed for ticket_id=%s", ticket_id)
        raise
    await db.refresh(ticket)
    return ticket


async def get_complaint_ticket_by_id(db: AsyncSession, ticket_id: int) -> ComplaintTicket | None:
    return (await db.execute(select(ComplaintTicket).where(ComplaintTicket.id == ticket_id))).scalar_one_or_none()


async def _require_ticket(db: AsyncSession, ticket_id: int) -> ComplaintTicket:
    ticket = await get_complaint_ticket_by_id(db, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket", ticket_id)
    return ticket


async def get_complaint_tickets(db: AsyncSession, query: TicketQuery | None = None) -> list[ComplaintTicket]:
    stmt = select(ComplaintTicket).order_by(desc(ComplaintTicket.created_at), desc(ComplaintTicket.id))
    stmt = (query or TicketQuery()).apply(stmt)
    return list((await db.execute(stmt)).scalars().all())


async def get_tickets_by_assignee(db: AsyncSession, user_id: int) -> list[ComplaintTicket]:
    return await get_complaint_tickets(db, TicketQuery(assigned_to=user_id))


async def get_tickets_by_team(db: AsyncSession, team: str) -> list[ComplaintTicket]:
    if team not in USER_ROLES:
        raise InvalidArgumentError(f"Unknown team: {team}")
    return await get_complaint_tickets(db, TicketQuery(assigned_team=team))


async def create_complaint_ticket(
    db: AsyncSession,
    payload: ComplaintTicketCreateIn,
    created_by: int,
) -> ComplaintTicket:
    creator = await require_active_user(db, created_by)

    ticket = ComplaintTicket(
        customer_id=payload.customer_id.strip(),
        customer_name=payload.customer_name.strip(),
        customer_address=payload.customer_address.strip(),
        customer_category=payload.customer_category,
        issue_description=payload.issue_description.strip(),
        issue_priority=payload.issue_priority,
        status=STATUS_NEW,
        created_by=creator.id,
        assigned_to=None,
        assigned_team=None,
        resolution_notes=None,
    )
    db.add(ticket)
    try:
        await db.flush()
        append_history(
            db,
            ticket_id=ticket.id,
            action="created",
            performed_by=creator.id,
            new_value=STATUS_NEW,
            notes=f"Ticket created by {creator.username}",
        )
    except Exception:
        await db.rollback()
        raise
    ticket = await _commit(db, ticket)
    logger.info("Created ticket id=%s customer_id=%s by user_id=%s", ticket.id, ticket.customer_id, creator.id)
    return ticket


async def update_complaint_ticket(
    db: AsyncSession,
    ticket_id: int,
    payload: ComplaintTicketUpdateIn,
    performed_by: int,
) -> ComplaintTicket | None:
    ticket = await get_complaint_ticket_by_id(db, ticket_id)
    if ticket is None:
        return None

    values = payload.model_dump(exclude_unset=True)
    for field in STRIPPED_FIELDS:
        if isinstance(values.get(field), str):
            values[field] = values[field].strip()
    assignee_id = values.get("assigned_to")
    if assignee_id is not None:
        assignee = (
            await db.execute(select(User).where(User.id == assignee_id, User.is_active.is_(True)))
        ).scalar_one_or_none()
        if assignee is None:
            raise InvalidAssignmentError(f"User with ID {assignee_id} does not exist or is not active")

    actor = await require_user(db, performed_by)

    changes: list[tuple[str, str, object, object]] = []
    for field, display_name in TRACKED_FIELDS:
        if field not in values:
            continue
        old_value = getattr(ticket, field)
        new_value = values[field]
        if old_value != new_value:
            changes.append((field, display_name, old_value, new_value))

    if not changes:
        return ticket

    previous_status = ticket.status
    now = utcnow()
    try:
        for field, display_name, old_value, new_value in changes:
            setattr(ticket, field, new_value)
            append_history(
                db,
                ticket_id=ticket_id,
                action=f"{display_name.lower()}_changed",
                performed_by=actor.id,
                previous_value=_as_text(old_value),
                new_value=_as_text(new_value),
                notes=f"{display_name} updated",
            )

        if ticket.status == STATUS_SOLVED and previous_status != STATUS_SOLVED:
            ticket.resolved_at = now
        elif ticket.status != STATUS_SOLVED and previous_status == STATUS_SOLVED:
            ticket.resolved_at = None
        ticket.updated_at = now
    except Exception:
        await db.rollback()
        logger.exception("Ticket update aborted for ticket_id=%s", ticket_id)
        raise

    ticket = await _commit(db, ticket)
    logger.info(
        "Updated ticket id=%s fields=%s by user_id=%s",
        ticket.id,
        ",".join(field for field, *_ in changes),
        actor.id,
    )
    return ticket


async def assign_ticket(
    db: AsyncSession,
    ticket_id: int,
    assigned_to: int | None,
    assigned_team: str,
    assigned_by: int,
) -> ComplaintTicket:
    ticket = await _require_ticket(db, ticket_id)
    await require_user(db, assigned_by)

    if assigned_team not in USER_ROLES:
        raise InvalidArgumentError(f"Unknown team: {assigned_team}")

    if assigned_to is not None:
        assignee = (
            await db.execute(
                select(User).where(
                    User.id == assigned_to,
                    User.role == assigned_team,
                    User.is_active.is_(True),
                )
            )
        ).scalar_one_or_none()
        if assignee is None:
            raise InvalidAssignmentError(
                f"User with ID {assigned_to} does not exist, is not active, or is not in team {assigned_team}"
            )

    if assigned_to is not None:
        action = "assigned_to_user"
        notes = f"Ticket assigned to user {assigned_to} in {assigned_team} team"
    else:
        action = "assigned_to_team"
        notes = f"Ticket assigned to {assigned_team} team"

    previous = encode_assignment(ticket.assigned_to, ticket.assigned_team)
    try:
        ticket.assigned_to = assigned_to
        ticket.assigned_team = assigned_team
        ticket.updated_at = utcnow()
        append_history(
            db,
            ticket_id=ticket_id,
            action=action,
            performed_by=assigned_by,
            previous_value=previous,
            new_value=encode_assignment(assigned_to, assigned_team),
            notes=notes,
        )
    except Exception:
        await db.rollback()
        logger.exception("Ticket assignment aborted for ticket_id=%s", ticket_id)
        raise
    ticket = await _commit(db, ticket)
    logger.info("Assigned ticket id=%s to user_id=%s team=%s", ticket.id, assigned_to, assigned_team)
    return ticket


async def transfer_ticket_to_team(
    db: AsyncSession,
    ticket_id: int,
    target_team: str,
    transferred_by: int,
) -> ComplaintTicket:
    if target_team not in USER_ROLES:
        raise InvalidArgumentError(f"Unknown team: {target_team}")

    ticket = await _require_ticket(db, ticket_id)
    await require_user(db, transferred_by)

    previous = encode_assignment(ticket.assigned_to, ticket.assigned_team) or "Unassigned"
    try:
        ticket.assigned_to = None
        ticket.assigned_team = target_team
        ticket.updated_at = utcnow()
        append_history(
            db,
            ticket_id=ticket_id,
            action="transferred_to_team",
            performed_by=transferred_by,
            previous_value=previous,
            new_value=f"Team: {target_team}",
            notes=f"Ticket transferred to {target_team} team",
        )
    except Exception:
        await db.rollback()
        logger.exception("Ticket transfer aborted for ticket_id=%s", ticket_id)
        raise
    ticket = await _commit(db, ticket)
    logger.info("Transferred ticket id=%s to team=%s", ticket.id, target_team)
    return ticket
