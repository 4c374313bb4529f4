"""
Health check endpoint
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from carenow.api.v1.dependencies import get_container
from carenow.core.container import Container
from carenow.db.base import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health(
    container: Container = Depends(get_container),
    db: AsyncSession = Depends(get_db)
):
    """
    Health check endpoint.
    """
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"

    settings = container.settings
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "business_timezone": settings.BUSINESS_TIMEZONE,
        "availability_sweeper_running": container.sweeper.is_running if container.sweeper else False,
    }
