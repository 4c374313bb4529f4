"""
API router for the partner jobs service
"""

from fastapi import APIRouter
from carenow.api.v1 import health
from carenow.api.v1 import bookings
from carenow.api.v1 import jobs
from carenow.api.v1 import availability
from carenow.api.v1 import earnings
from carenow.api.v1 import partners
from carenow.api.v1 import dashboard

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["service"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Partner-scoped routes; profile routes come last so /{uid} never shadows them
api_router.include_router(jobs.router, prefix="/partners", tags=["jobs"])
api_router.include_router(availability.router, prefix="/partners", tags=["availability"])
api_router.include_router(earnings.router, prefix="/partners", tags=["earnings"])
api_router.include_router(dashboard.router, prefix="/partners", tags=["dashboard"])
api_router.include_router(partners.router, prefix="/partners", tags=["partners"])
