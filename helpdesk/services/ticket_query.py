from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from typing import Any

from sqlalchemy import ColumnElement, Select

from helpdesk.models.ticket import ComplaintTicket


def start_bound(value: date | datetime | None) -> datetime | None:
    """Lower bound of a range; a bare date means the start of that day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_bound(value: date | datetime | None) -> datetime | None:
    """Upper bound of a range; a bare date includes the whole day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@dataclass(slots=True)
class TicketQuery:
    status: str | None = None
    priority: str | None = None
    assigned_team: str | None = None
    assigned_to: int | None = None
    customer_category: str | None = None
    created_by: int | None = None
    customer_id: str | None = None
    start: date | datetime | None = None
    end: date | datetime | None = None

    @classmethod
    def for_month(cls, year: int, month: int, **filters: Any) -> TicketQuery:
        first, last = month_bounds(year, month)
        return cls(start=first, end=last, **filters)

    @classmethod
    def for_range(
        cls,
        start: date | datetime | None,
        end: date | datetime | None,
        **filters: Any,
    ) -> TicketQuery:
        return cls(start=start, end=end, **filters)

    def narrowed(self, **changes: Any) -> TicketQuery:
        return replace(self, **changes)

    def conditions(self) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if self.status is not None:
            clauses.append(ComplaintTicket.status == self.status)
        if self.priority is not None:
            clauses.append(ComplaintTicket.issue_priority == self.priority)
        if self.assigned_team is not None:
            clauses.append(ComplaintTicket.assigned_team == self.assigned_team)
        if self.assigned_to is not None:
            clauses.append(ComplaintTicket.assigned_to == self.assigned_to)
        if self.customer_category is not None:
            clauses.append(ComplaintTicket.customer_category == self.customer_category)
        if self.created_by is not None:
            clauses.append(ComplaintTicket.created_by == self.created_by)
        if self.customer_id is not None:
            clauses.append(ComplaintTicket.customer_id == self.customer_id)

        lower = start_bound(self.start)
        if lower is not None:
            clauses.append(ComplaintTicket.created_at >= lower)
        upper = end_bound(self.end)
        if upper is not None:
            clauses.append(ComplaintTicket.created_at <= upper)
        return clauses

    def apply(self, stmt: Select) -> Select:
        clauses = self.conditions()
        if clauses:
            stmt = stmt.where(*clauses)
        return stmt
