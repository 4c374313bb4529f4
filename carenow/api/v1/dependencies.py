"""
Request dependencies resolving components from the application container
"""

from fastapi import Request

from carenow.core.container import Container
from carenow.services.partner_job_service import PartnerJobService
from carenow.services.partner_profile_service import PartnerProfileService


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_job_service(request: Request) -> PartnerJobService:
    """Dependency to get the partner job service"""
    return get_container(request).job_service


def get_profile_service(request: Request) -> PartnerProfileService:
    """Dependency to get the partner profile service"""
    return get_container(request).profile_service
