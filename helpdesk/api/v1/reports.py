from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.api.v1.deps import check_date_range
from helpdesk.db.session import get_db
from helpdesk.schemas.common import UserRole
from helpdesk.schemas.report import (
    CustomerFrequencyStatsOut,
    IssueTypeStatsOut,
    MonthlyReportOut,
    TeamPerformanceOut,
    UserWorkloadStatsOut,
)
from helpdesk.services import reports as report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/monthly", response_model=MonthlyReportOut)
async def monthly_report(
    year: int = Query(ge=2000, le=9999),
    month: int = Query(ge=1, le=12),
    team: UserRole | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> MonthlyReportOut:
    return await report_service.generate_monthly_report(db, year, month, team=team)


@router.get("/workload", response_model=list[UserWorkloadStatsOut])
async def workload(
    start_date: date = Query(),
    end_date: date = Query(),
    user_id: int | None = Query(default=None, ge=1),
    team: UserRole | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[UserWorkloadStatsOut]:
    check_date_range(start_date, end_date)
    return await report_service.get_user_workload_stats(db, start_date, end_date, user_id=user_id, team=team)


@router.get("/issue-types", response_model=list[IssueTypeStatsOut])
async def issue_types(
    start_date: date = Query(),
    end_date: date = Query(),
    db: AsyncSession = Depends(get_db),
) -> list[IssueTypeStatsOut]:
    check_date_range(start_date, end_date)
    return await report_service.get_issue_type_analysis(db, start_date, end_date)


@router.get("/customer-frequency", response_model=list[CustomerFrequencyStatsOut])
async def customer_frequency(
    start_date: date = Query(),
    end_date: date = Query(),
    db: AsyncSession = Depends(get_db),
) -> list[CustomerFrequencyStatsOut]:
    check_date_range(start_date, end_date)
    return await report_service.get_customer_frequency_analysis(db, start_date, end_date)


@router.get("/team-performance", response_model=TeamPerformanceOut)
async def team_performance(
    team: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> TeamPerformanceOut:
    check_date_range(start_date, end_date)
    return await report_service.get_team_performance_metrics(db, team=team, start_date=start_date, end_date=end_date)
