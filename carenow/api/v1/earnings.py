"""
Partner earnings endpoints
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from carenow.api.v1.dependencies import get_job_service
from carenow.api.v1.errors import http_error
from carenow.core.exceptions import Failure
from carenow.schemas.earnings import PartnerEarnings, WindowTotals, DailyEarning, PerformanceMetrics
from carenow.services.partner_job_service import PartnerJobService

router = APIRouter()


@router.get("/{partner_id}/earnings", response_model=PartnerEarnings)
async def get_earnings(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.get_partner_earnings(partner_id)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/earnings/daily", response_model=List[DailyEarning])
async def get_daily_earnings(
    partner_id: str,
    start_date: datetime = Query(..., description="Completed on or after"),
    end_date: datetime = Query(..., description="Completed on or before"),
    service: PartnerJobService = Depends(get_job_service)
):
    """
    Completed-job earnings per business day in the range.
    """
    try:
        return await service.get_earnings_by_date_range(partner_id, start_date, end_date)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/earnings/windows/{window}", response_model=WindowTotals)
async def get_earnings_window(partner_id: str, window: str, service: PartnerJobService = Depends(get_job_service)):
    """
    Earnings and job count for one window: today or total.

    Week and month counters are not maintained and answer 501.
    """
    try:
        return await service.get_earnings_window(partner_id, window)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/performance", response_model=PerformanceMetrics)
async def get_performance(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.get_performance_metrics(partner_id)
    except Failure as e:
        raise http_error(e)
