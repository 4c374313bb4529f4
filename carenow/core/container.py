"""
Application container

Builds the engine, document store, repository and services once at
startup and hands the same instances to every request. Tests build their
own container against a temporary database.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from carenow.core.config import Settings
from carenow.db.base import create_engine, create_session_factory, create_tables
from carenow.db.document_store import DocumentStore
from carenow.repositories.store_partner_job_repository import StorePartnerJobRepository
from carenow.services.availability_sweeper import AvailabilitySweeper
from carenow.services.dashboard_bloc import PartnerDashboardBloc
from carenow.services.partner_job_service import PartnerJobService
from carenow.services.partner_profile_service import PartnerProfileService
from carenow.utils.clock import Clock

logger = logging.getLogger(__name__)


class Container:
    """Owns every long-lived component of the service"""

    def __init__(self, settings: Settings, clock: Optional[Clock] = None):
        self.settings = settings
        self.clock = clock or Clock(settings.BUSINESS_TIMEZONE)
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self.store: Optional[DocumentStore] = None
        self.repository: Optional[StorePartnerJobRepository] = None
        self.job_service: Optional[PartnerJobService] = None
        self.profile_service: Optional[PartnerProfileService] = None
        self.sweeper: Optional[AvailabilitySweeper] = None

    @property
    def is_started(self) -> bool:
        return self.store is not None

    async def start(self) -> "Container":
        if self.is_started:
            return self

        self.engine = create_engine(self.settings.DATABASE_URL, echo=self.settings.DEBUG)
        self.session_factory = create_session_factory(self.engine)
        if self.settings.AUTO_CREATE_TABLES:
            await create_tables(self.engine)

        self.store = DocumentStore(self.session_factory, max_attempts=self.settings.STORE_MAX_RETRIES)
        self.repository = StorePartnerJobRepository(self.store, self.clock, self.settings)
        self.job_service = PartnerJobService(self.repository)
        self.profile_service = PartnerProfileService(self.store, self.clock, self.settings)
        self.sweeper = AvailabilitySweeper(
            self.job_service,
            self.clock,
            self.settings.AVAILABILITY_SWEEP_INTERVAL_SECONDS
        )
        self.sweeper.start()

        logger.info(f"Container started (database: {self.engine.url.render_as_string(hide_password=True)})")
        return self

    async def dispose(self) -> None:
        if self.sweeper is not None:
            await self.sweeper.stop()
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        self.store = None
        self.repository = None
        self.job_service = None
        self.profile_service = None
        self.sweeper = None
        logger.info("Container disposed")

    def dashboard_bloc(self, partner_id: Optional[str] = None) -> PartnerDashboardBloc:
        """A new dashboard for one client; close it when the client goes away"""
        if self.job_service is None:
            raise RuntimeError("Container is not started")
        return PartnerDashboardBloc(self.job_service, self.settings, partner_id)
