from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from helpdesk.schemas.common import IssuePriority, TicketStatus, UserRole


class DashboardMetricsOut(BaseModel):
    total_tickets: int
    tickets_by_status: dict[str, int]
    tickets_by_team: dict[str, int]
    unassigned_tickets: int
    overdue_priority_tickets: int
    average_resolution_time: float
    today_created: int
    today_resolved: int


class DashboardUserOut(BaseModel):
    id: int
    username: str
    full_name: str
    role: UserRole


class PersonalMetricsOut(BaseModel):
    assigned_tickets: int
    tickets_in_progress: int
    tickets_resolved: int
    average_resolution_time: float


class RecentTicketOut(BaseModel):
    id: int
    customer_name: str
    issue_description: str
    status: TicketStatus
    priority: IssuePriority
    created_at: datetime


class UserDashboardOut(BaseModel):
    user: DashboardUserOut
    personal_metrics: PersonalMetricsOut
    recent_tickets: list[RecentTicketOut] = Field(default_factory=list)


class MonthlyReportPeriod(BaseModel):
    year: int
    month: int
    start_date: date
    end_date: date


class MonthlyReportSummary(BaseModel):
    total_tickets: int
    new_tickets: int
    in_progress_tickets: int
    pending_tickets: int
    cancelled_tickets: int
    resolved_tickets: int
    resolution_rate: float
    avg_resolution_time_hours: float


class PriorityCount(BaseModel):
    priority: IssuePriority
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class MonthlyReportOut(BaseModel):
    period: MonthlyReportPeriod
    team: str
    summary: MonthlyReportSummary
    priority_breakdown: list[PriorityCount] = Field(default_factory=list)
    category_breakdown: list[CategoryCount] = Field(default_factory=list)


class UserWorkloadStatsOut(BaseModel):
    user_id: int
    username: str
    full_name: str
    team: UserRole
    total_tickets_handled: int
    tickets_resolved: int
    tickets_in_progress: int
    average_resolution_time_hours: float | None = None


class IssueTypeStatsOut(BaseModel):
    dimension: Literal["customer_category", "priority"]
    issue_type: str
    count: int
    percentage: float


class CustomerFrequencyStatsOut(BaseModel):
    customer_id: str
    customer_name: str
    complaint_count: int
    last_complaint_date: datetime


class ReportPeriod(BaseModel):
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None


class TeamMetricsOut(BaseModel):
    team: UserRole
    total_tickets: int
    resolved_tickets: int
    in_progress_tickets: int
    pending_tickets: int
    resolution_rate: float
    avg_resolution_time_hours: float | None = None
    efficiency_score: float | None = None


class TeamPerformanceOut(BaseModel):
    period: ReportPeriod
    team_metrics: list[TeamMetricsOut] = Field(default_factory=list)
