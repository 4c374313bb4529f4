"""
Partner availability endpoints
"""

from fastapi import APIRouter, Depends

from carenow.api.v1.dependencies import get_job_service
from carenow.api.v1.errors import http_error
from carenow.core.exceptions import Failure
from carenow.schemas.availability import (
    PartnerAvailability,
    AvailabilityStatusRequest,
    OnlineStatusRequest,
    WorkingHoursRequest,
    BlockedDatesRequest,
    TemporaryUnavailabilityRequest,
)
from carenow.services.partner_job_service import PartnerJobService

router = APIRouter()


@router.get("/{partner_id}/availability", response_model=PartnerAvailability)
async def get_availability(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    """
    Availability of a partner; a default document is created on first access.
    """
    try:
        return await service.get_partner_availability(partner_id)
    except Failure as e:
        raise http_error(e)


@router.put("/{partner_id}/availability/status", response_model=PartnerAvailability)
async def update_availability_status(
    partner_id: str,
    data: AvailabilityStatusRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.update_availability_status(partner_id, data.is_available, data.reason)
    except Failure as e:
        raise http_error(e)


@router.put("/{partner_id}/availability/online", response_model=PartnerAvailability)
async def update_online_status(
    partner_id: str,
    data: OnlineStatusRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.update_online_status(partner_id, data.is_online)
    except Failure as e:
        raise http_error(e)


@router.put("/{partner_id}/availability/working-hours", response_model=PartnerAvailability)
async def update_working_hours(
    partner_id: str,
    data: WorkingHoursRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.update_working_hours(partner_id, data.working_hours)
    except Failure as e:
        raise http_error(e)


@router.post("/{partner_id}/availability/blocked-dates", response_model=PartnerAvailability)
async def block_dates(
    partner_id: str,
    data: BlockedDatesRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.block_dates(partner_id, data.dates)
    except Failure as e:
        raise http_error(e)


@router.delete("/{partner_id}/availability/blocked-dates", response_model=PartnerAvailability)
async def unblock_dates(
    partner_id: str,
    data: BlockedDatesRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.unblock_dates(partner_id, data.dates)
    except Failure as e:
        raise http_error(e)


@router.put("/{partner_id}/availability/temporary-unavailability", response_model=PartnerAvailability)
async def set_temporary_unavailability(
    partner_id: str,
    data: TemporaryUnavailabilityRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    try:
        return await service.set_temporary_unavailability(partner_id, data.unavailable_until, data.reason)
    except Failure as e:
        raise http_error(e)


@router.delete("/{partner_id}/availability/temporary-unavailability", response_model=PartnerAvailability)
async def clear_temporary_unavailability(partner_id: str, service: PartnerJobService = Depends(get_job_service)):
    try:
        return await service.clear_temporary_unavailability(partner_id)
    except Failure as e:
        raise http_error(e)
