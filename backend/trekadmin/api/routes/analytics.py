"""
Revenue analytics and dashboard endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.db.session import get_db
from trekadmin.schemas.analytics import DashboardSummary, RevenueSummary
from trekadmin.services.analytics_service import dashboard_summary, revenue_summary

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/revenue", response_model=RevenueSummary)
async def revenue_endpoint(db: AsyncSession = Depends(get_db)):
    return await revenue_summary(db)


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard_endpoint(db: AsyncSession = Depends(get_db)):
    return await dashboard_summary(db)
