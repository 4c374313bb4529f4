"""
Partner job endpoints
"""

from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, Query

from carenow.api.v1.dependencies import get_job_service
from carenow.api.v1.errors import http_error
from carenow.core.exceptions import Failure
from carenow.schemas.earnings import JobStatistics
from carenow.schemas.job import Job, JobReasonRequest
from carenow.services.partner_job_service import PartnerJobService

router = APIRouter()


@router.get("/{partner_id}/jobs", response_model=List[Job])
async def get_job_history(
    partner_id: str,
    status: Optional[str] = Query(None, description="Only jobs with this status"),
    start_date: Optional[datetime] = Query(None, description="Scheduled on or after"),
    end_date: Optional[datetime] = Query(None, description="Scheduled on or before"),
    limit: int = Query(20, description="Maximum number of jobs"),
    service: PartnerJobService = Depends(get_job_service)
):
    """
    Job history of a partner, most recently scheduled first.
    """
    try:
        return await service.get_job_history(partner_id, status, start_date, end_date, limit)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/jobs/pending", response_model=List[Job])
async def get_pending_jobs(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.get_pending_jobs(partner_id)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/jobs/active", response_model=List[Job])
async def get_active_jobs(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    """Accepted and in-progress jobs by scheduled date"""
    try:
        return await service.get_accepted_jobs(partner_id)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/jobs/statistics", response_model=JobStatistics)
async def get_job_statistics(
    partner_id: str,
    start_date: Optional[datetime] = Query(None, description="Created on or after"),
    end_date: Optional[datetime] = Query(None, description="Created on or before"),
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.get_job_statistics(partner_id, start_date, end_date)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/jobs/notifications/unread-count")
async def get_unread_notifications_count(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        count = await service.get_unread_notifications_count(partner_id)
    except Failure as e:
        raise http_error(e)
    return {"partnerId": partner_id, "unreadCount": count}


@router.post("/{partner_id}/jobs/notifications/{job_id}/read", status_code=204)
async def mark_notification_as_read(
    partner_id: str,
    job_id: str,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        await service.mark_job_notification_as_read(partner_id, job_id)
    except Failure as e:
        raise http_error(e)


@router.get("/{partner_id}/jobs/{job_id}", response_model=Job)
async def get_job(partner_id: str, job_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.get_job(partner_id, job_id)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/jobs/{job_id}/accept", response_model=Job)
async def accept_job(partner_id: str, job_id: str, service: PartnerJobService = Depends(get_job_service)):
    """
    Accept a pending job. The booking is mirrored as confirmed.
    """
    try:
        return await service.accept_job(partner_id, job_id)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/jobs/{job_id}/reject", response_model=Job)
async def reject_job(
    partner_id: str,
    job_id: str,
    data: JobReasonRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.reject_job(partner_id, job_id, data.reason)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/jobs/{job_id}/start", response_model=Job)
async def start_job(partner_id: str, job_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.start_job(partner_id, job_id)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/jobs/{job_id}/complete", response_model=Job)
async def complete_job(partner_id: str, job_id: str, service: PartnerJobService = Depends(get_job_service)):
    """
    Complete an in-progress job and add its earnings to the partner's totals.
    """
    try:
        return await service.complete_job(partner_id, job_id)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/jobs/{job_id}/cancel", response_model=Job)
async def cancel_job(
    partner_id: str,
    job_id: str,
    data: JobReasonRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.cancel_job(partner_id, job_id, data.reason)
    except Failure as e:
        raise http_error(e)
