from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.models.common import as_utc
from helpdesk.models.ticket import STATUS_SOLVED, ComplaintTicket


def resolution_hours(created_at: datetime, resolved_at: datetime) -> float:
    return (as_utc(resolved_at) - as_utc(created_at)).total_seconds() / 3600


def average_hours(pairs: Iterable[tuple[datetime, datetime | None]]) -> float | None:
    durations = [resolution_hours(created, resolved) for created, resolved in pairs if resolved is not None]
    if not durations:
        return None
    return round(sum(durations) / len(durations), 2)


def rate(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(part / total * 100, 2)


def resolution_pairs_stmt() -> Select:
    return select(ComplaintTicket.created_at, ComplaintTicket.resolved_at).where(
        ComplaintTicket.status == STATUS_SOLVED,
        ComplaintTicket.resolved_at.is_not(None),
    )


async def fetch_average_hours(db: AsyncSession, stmt: Select) -> float | None:
    rows = (await db.execute(stmt)).all()
    return average_hours((row[0], row[1]) for row in rows)
