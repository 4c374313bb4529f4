"""
Booking assignment endpoint
"""

import logging

from fastapi import APIRouter, Depends

from carenow.api.v1.dependencies import get_job_service
from carenow.api.v1.errors import http_error
from carenow.core.exceptions import Failure
from carenow.schemas.job import Job, AssignBookingRequest
from carenow.services.partner_job_service import PartnerJobService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{booking_id}/assign", response_model=Job, status_code=201)
async def assign_booking(
    booking_id: str,
    data: AssignBookingRequest,
    service: PartnerJobService = Depends(get_job_service)
):
    """
    Create the partner job for a booking.

    The partner comes from the request body or, when omitted, from the
    booking document. Assigning the same booking again returns the
    existing job.
    """
    try:
        job = await service.create_job_from_booking(booking_id, data.partner_id)
    except Failure as e:
        raise http_error(e)
    logger.info(f"Booking {booking_id} assigned to partner {job.partner_id}")
    return job
