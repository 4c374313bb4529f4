"""
Partner profile endpoints
"""

import logging

from fastapi import APIRouter, Depends

from carenow.api.v1.dependencies import get_profile_service
from carenow.api.v1.errors import http_error
from carenow.core.exceptions import Failure
from carenow.schemas.partner import PartnerProfile, UpdateServicesRequest
from carenow.services.partner_profile_service import PartnerProfileService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=PartnerProfile, status_code=201)
async def create_partner(data: PartnerProfile, service: PartnerProfileService = Depends(get_profile_service)):
    """
    Onboard a partner. Working hours from the profile seed the partner's availability.
    """
    try:
        return await service.create_partner_profile(data)
    except Failure as e:
        raise http_error(e)


@router.get("/{uid}", response_model=PartnerProfile)
async def get_partner(uid: str, service: PartnerProfileService = Depends(get_profile_service)):
    try:
        return await service.get_partner_profile(uid)
    except Failure as e:
        raise http_error(e)


@router.put("/{uid}/services", response_model=PartnerProfile)
async def update_partner_services(
    uid: str,
    data: UpdateServicesRequest,
    service: PartnerProfileService = Depends(get_profile_service)
):
    try:
        return await service.update_partner_services(uid, data.services)
    except Failure as e:
        raise http_error(e)
