from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.db.session import get_db
from helpdesk.schemas.report import DashboardMetricsOut
from helpdesk.services.dashboard import get_dashboard_metrics

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardMetricsOut)
async def dashboard_metrics(db: AsyncSession = Depends(get_db)) -> DashboardMetricsOut:
    return await get_dashboard_metrics(db)
