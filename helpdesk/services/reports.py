from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import case, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import InvalidArgumentError
from helpdesk.models.common import as_utc
from helpdesk.models.ticket import (
    CUSTOMER_CATEGORIES,
    ISSUE_PRIORITIES,
    STATUS_CANCEL,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    STATUS_PENDING,
    STATUS_SOLVED,
    ComplaintTicket,
)
from helpdesk.models.user import USER_ROLES, User
from helpdesk.schemas.report import (
    CategoryCount,
    CustomerFrequencyStatsOut,
    IssueTypeStatsOut,
    MonthlyReportOut,
    MonthlyReportPeriod,
    MonthlyReportSummary,
    PriorityCount,
    ReportPeriod,
    TeamMetricsOut,
    TeamPerformanceOut,
    UserWorkloadStatsOut,
)
from helpdesk.services.stats import average_hours, fetch_average_hours, rate, resolution_pairs_stmt
from helpdesk.services.ticket_query import TicketQuery, month_bounds


logger = logging.getLogger(__name__)

ALL_TEAMS_LABEL = "All Teams"


def _check_team(team: str | None) -> None:
    if team is not None and team not in USER_ROLES:
        raise InvalidArgumentError(f"Unknown team: {team}")


def _count_where(status: str):
    return func.sum(case((ComplaintTicket.status == status, 1), else_=0))


def apportion_percentages(counts: list[int]) -> list[float]:
    """Percentages with 2 decimals that add up to exactly 100 (largest remainder)."""
    total = sum(counts)
    if total <= 0:
        return [0.0 for _ in counts]

    units = 100 * 100
    quotas = [count * units / total for count in counts]
    floors = [math.floor(q) for q in quotas]
    leftover = units - sum(floors)
    order = sorted(range(len(counts)), key=lambda i: (quotas[i] - floors[i], counts[i]), reverse=True)
    for i in order[:leftover]:
        floors[i] += 1
    return [f / 100 for f in floors]


async def generate_monthly_report(
    db: AsyncSession,
    year: int,
    month: int,
    team: str | None = None,
) -> MonthlyReportOut:
    if not 1 <= month <= 12:
        raise InvalidArgumentError(f"Invalid month: {month}")
    _check_team(team)

    first, last = month_bounds(year, month)
    query = TicketQuery.for_month(year, month, assigned_team=team)

    row = (
        await db.execute(
            query.apply(
                select(
                    func.count(ComplaintTicket.id),
                    _count_where(STATUS_NEW),
                    _count_where(STATUS_IN_PROGRESS),
                    _count_where(STATUS_PENDING),
                    _count_where(STATUS_CANCEL),
                    _count_where(STATUS_SOLVED),
                )
            )
        )
    ).one()
    total, new, in_progress, pending, cancelled, resolved = (int(x or 0) for x in row)

    average = await fetch_average_hours(db, query.apply(resolution_pairs_stmt()))

    priority_rows = (
        await db.execute(
            query.apply(select(ComplaintTicket.issue_priority, func.count(ComplaintTicket.id)))
            .group_by(ComplaintTicket.issue_priority)
            .order_by(desc(func.count(ComplaintTicket.id)), ComplaintTicket.issue_priority)
        )
    ).all()
    category_rows = (
        await db.execute(
            query.apply(select(ComplaintTicket.customer_category, func.count(ComplaintTicket.id)))
            .group_by(ComplaintTicket.customer_category)
            .order_by(desc(func.count(ComplaintTicket.id)), ComplaintTicket.customer_category)
        )
    ).all()

    return MonthlyReportOut(
        period=MonthlyReportPeriod(year=year, month=month, start_date=first, end_date=last),
        team=team or ALL_TEAMS_LABEL,
        summary=MonthlyReportSummary(
            total_tickets=total,
            new_tickets=new,
            in_progress_tickets=in_progress,
            pending_tickets=pending,
            cancelled_tickets=cancelled,
            resolved_tickets=resolved,
            resolution_rate=rate(resolved, total),
            avg_resolution_time_hours=average or 0.0,
        ),
        priority_breakdown=[PriorityCount(priority=p, count=int(c)) for p, c in priority_rows if c],
        category_breakdown=[CategoryCount(category=cat, count=int(c)) for cat, c in category_rows if c],
    )


async def get_user_workload_stats(
    db: AsyncSession,
    start_date: date | datetime,
    end_date: date | datetime,
    user_id: int | None = None,
    team: str | None = None,
) -> list[UserWorkloadStatsOut]:
    _check_team(team)
    query = TicketQuery.for_range(start_date, end_date, assigned_to=user_id)

    stmt = query.apply(
        select(
            User.id,
            User.username,
            User.full_name,
            User.role,
            func.count(ComplaintTicket.id),
            _count_where(STATUS_SOLVED),
            _count_where(STATUS_IN_PROGRESS),
        )
        .select_from(ComplaintTicket)
        .join(User, User.id == ComplaintTicket.assigned_to)
    ).group_by(User.id, User.username, User.full_name, User.role)
    if team is not None:
        stmt = stmt.where(User.role == team)
    rows = (await db.execute(stmt)).all()

    pairs_stmt = query.apply(
        select(ComplaintTicket.assigned_to, ComplaintTicket.created_at, ComplaintTicket.resolved_at).where(
            ComplaintTicket.status == STATUS_SOLVED,
            ComplaintTicket.resolved_at.is_not(None),
            ComplaintTicket.assigned_to.is_not(None),
        )
    )
    pairs: dict[int, list[tuple[datetime, datetime]]] = defaultdict(list)
    for assignee, created_at, resolved_at in (await db.execute(pairs_stmt)).all():
        pairs[assignee].append((created_at, resolved_at))

    stats = [
        UserWorkloadStatsOut(
            user_id=uid,
            username=username,
            full_name=full_name,
            team=role,
            total_tickets_handled=int(handled),
            tickets_resolved=int(solved or 0),
            tickets_in_progress=int(progressing or 0),
            average_resolution_time_hours=average_hours(pairs.get(uid, [])),
        )
        for uid, username, full_name, role, handled, solved, progressing in rows
    ]
    stats.sort(key=lambda s: (-s.total_tickets_handled, s.user_id))
    return stats


async def get_issue_type_analysis(
    db: AsyncSession,
    start_date: date | datetime,
    end_date: date | datetime,
) -> list[IssueTypeStatsOut]:
    query = TicketQuery.for_range(start_date, end_date)
    result: list[IssueTypeStatsOut] = []

    dimensions = (
        ("customer_category", ComplaintTicket.customer_category, CUSTOMER_CATEGORIES, "{}"),
        ("priority", ComplaintTicket.issue_priority, ISSUE_PRIORITIES, "{} Priority"),
    )
    for dimension, column, ordering, label in dimensions:
        rows = (
            await db.execute(query.apply(select(column, func.count(ComplaintTicket.id))).group_by(column))
        ).all()
        counts = {value: int(count) for value, count in rows if count}
        if not counts:
            continue
        keys = sorted(counts, key=lambda k: (-counts[k], ordering.index(k)))
        percentages = apportion_percentages([counts[k] for k in keys])
        result.extend(
            IssueTypeStatsOut(
                dimension=dimension,
                issue_type=label.format(key),
                count=counts[key],
                percentage=pct,
            )
            for key, pct in zip(keys, percentages)
        )
    return result


async def get_customer_frequency_analysis(
    db: AsyncSession,
    start_date: date | datetime,
    end_date: date | datetime,
) -> list[CustomerFrequencyStatsOut]:
    complaint_count = func.count(ComplaintTicket.id)
    stmt = (
        TicketQuery.for_range(start_date, end_date)
        .apply(
            select(
                ComplaintTicket.customer_id,
                ComplaintTicket.customer_name,
                complaint_count,
                func.max(ComplaintTicket.created_at),
            )
        )
        .group_by(ComplaintTicket.customer_id, ComplaintTicket.customer_name)
        .having(complaint_count > 1)
        .order_by(desc(complaint_count), ComplaintTicket.customer_id)
    )
    rows = (await db.execute(stmt)).all()
    return [
        CustomerFrequencyStatsOut(
            customer_id=customer_id,
            customer_name=customer_name,
            complaint_count=int(count),
            last_complaint_date=as_utc(last_seen),
        )
        for customer_id, customer_name, count, last_seen in rows
    ]


def efficiency_score(resolved: int, total: int, avg_hours: float | None) -> float | None:
    if avg_hours is None or avg_hours == 0 or total == 0:
        return None
    return round(resolved / (total * avg_hours / 24), 2)


async def get_team_performance_metrics(
    db: AsyncSession,
    team: str | None = None,
    start_date: date | datetime | None = None,
    end_date: date | datetime | None = None,
) -> TeamPerformanceOut:
    _check_team(team)
    query = TicketQuery.for_range(start_date, end_date, assigned_team=team)

    rows = (
        await db.execute(
            query.apply(
                select(
                    ComplaintTicket.assigned_team,
                    func.count(ComplaintTicket.id),
                    _count_where(STATUS_SOLVED),
                    _count_where(STATUS_IN_PROGRESS),
                    _count_where(STATUS_PENDING),
                ).where(ComplaintTicket.assigned_team.is_not(None))
            )
            .group_by(ComplaintTicket.assigned_team)
            .order_by(ComplaintTicket.assigned_team)
        )
    ).all()

    metrics: list[TeamMetricsOut] = []
    for team_name, total, solved, progressing, pending in rows:
        total = int(total)
        solved = int(solved or 0)
        avg = await fetch_average_hours(db, query.narrowed(assigned_team=team_name).apply(resolution_pairs_stmt()))
        metrics.append(
            TeamMetricsOut(
                team=team_name,
                total_tickets=total,
                resolved_tickets=solved,
                in_progress_tickets=int(progressing or 0),
                pending_tickets=int(pending or 0),
                resolution_rate=rate(solved, total),
                avg_resolution_time_hours=avg,
                efficiency_score=efficiency_score(solved, total, avg),
            )
        )

    logger.debug("Team performance computed for %d team(s)", len(metrics))
    return TeamPerformanceOut(
        period=ReportPeriod(start_date=start_date, end_date=end_date),
        team_metrics=metrics,
    )
