from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import ColumnElement, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.models.common import as_utc, utcnow
from helpdesk.models.ticket import (
    STATUS_CANCEL,
    STATUS_IN_PROGRESS,
    STATUS_SOLVED,
    TICKET_STATUSES,
    ComplaintTicket,
)
from helpdesk.models.user import USER_ROLES
from helpdesk.schemas.report import (
    DashboardMetricsOut,
    DashboardUserOut,
    PersonalMetricsOut,
    RecentTicketOut,
    UserDashboardOut,
)
from helpdesk.services.stats import fetch_average_hours, resolution_pairs_stmt
from helpdesk.services.ticket_query import TicketQuery
from helpdesk.services.users import require_user


URGENT_PRIORITIES = ("High", "Critical")
RECENT_TICKETS_LIMIT = 10


def today_window(now: datetime, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the report-timezone day containing ``now``, in UTC."""
    tz = ZoneInfo(tz_name or settings.report_timezone)
    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


async def _count(db: AsyncSession, *clauses: ColumnElement[bool]) -> int:
    stmt = select(func.count(ComplaintTicket.id))
    if clauses:
        stmt = stmt.where(*clauses)
    return int((await db.execute(stmt)).scalar_one())


async def get_dashboard_metrics(db: AsyncSession, now: datetime | None = None) -> DashboardMetricsOut:
    now = as_utc(now) if now is not None else utcnow()

    total = await _count(db)

    by_status = dict.fromkeys(TICKET_STATUSES, 0)
    rows = (
        await db.execute(select(ComplaintTicket.status, func.count(ComplaintTicket.id)).group_by(ComplaintTicket.status))
    ).all()
    for status, count in rows:
        by_status[status] = int(count)

    by_team = dict.fromkeys(USER_ROLES, 0)
    rows = (
        await db.execute(
            select(ComplaintTicket.assigned_team, func.count(ComplaintTicket.id))
            .where(ComplaintTicket.assigned_team.is_not(None))
            .group_by(ComplaintTicket.assigned_team)
        )
    ).all()
    for team, count in rows:
        by_team[team] = int(count)

    unassigned = await _count(db, ComplaintTicket.assigned_to.is_(None))

    cutoff = now - timedelta(hours=settings.overdue_after_hours)
    overdue = await _count(
        db,
        ComplaintTicket.issue_priority.in_(URGENT_PRIORITIES),
        ComplaintTicket.created_at <= cutoff,
        ComplaintTicket.status.not_in((STATUS_SOLVED, STATUS_CANCEL)),
    )

    average = await fetch_average_hours(db, resolution_pairs_stmt())

    day_start, day_end = today_window(now)
    today_created = await _count(db, *TicketQuery(start=day_start).conditions(), ComplaintTicket.created_at < day_end)
    today_resolved = await _count(
        db,
        ComplaintTicket.resolved_at >= day_start,
        ComplaintTicket.resolved_at < day_end,
    )

    return DashboardMetricsOut(
        total_tickets=total,
        tickets_by_status=by_status,
        tickets_by_team=by_team,
        unassigned_tickets=unassigned,
        overdue_priority_tickets=overdue,
        average_resolution_time=average or 0.0,
        today_created=today_created,
        today_resolved=today_resolved,
    )


async def get_user_dashboard(db: AsyncSession, user_id: int) -> UserDashboardOut:
    user = await require_user(db, user_id)
    mine = TicketQuery(assigned_to=user.id)

    assigned = await _count(db, *mine.conditions())
    in_progress = await _count(db, *mine.narrowed(status=STATUS_IN_PROGRESS).conditions())
    resolved = await _count(db, *mine.narrowed(status=STATUS_SOLVED).conditions())
    average = await fetch_average_hours(db, mine.apply(resolution_pairs_stmt()))

    recent = (
        await db.execute(
            mine.apply(select(ComplaintTicket))
            .order_by(desc(ComplaintTicket.created_at), desc(ComplaintTicket.id))
            .limit(RECENT_TICKETS_LIMIT)
        )
    ).scalars().all()

    return UserDashboardOut(
        user=DashboardUserOut(id=user.id, username=user.username, full_name=user.full_name, role=user.role),
        personal_metrics=PersonalMetricsOut(
            assigned_tickets=assigned,
            tickets_in_progress=in_progress,
            tickets_resolved=resolved,
            average_resolution_time=average or 0.0,
        ),
        recent_tickets=[
            RecentTicketOut(
                id=t.id,
                customer_name=t.customer_name,
                issue_description=t.issue_description,
                status=t.status,
                priority=t.issue_priority,
                created_at=t.created_at,
            )
            for t in recent
        ],
    )
