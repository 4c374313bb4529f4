"""
Background sweep of expired temporary unavailability
"""

import asyncio
import logging
from typing import Optional, List

from carenow.core.exceptions import Failure
from carenow.services.partner_job_service import PartnerJobService
from carenow.utils.clock import Clock

logger = logging.getLogger(__name__)


class AvailabilitySweeper:
    """
    Periodically makes partners available again once their temporary
    unavailability window has ended. An interval of 0 disables the loop;
    sweep_once() can still be called directly.
    """

    def __init__(self, service: PartnerJobService, clock: Clock, interval_seconds: float):
        self.service = service
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> List[str]:
        return await self.service.clear_expired_unavailability(self.clock.now())

    def start(self) -> None:
        if self.interval_seconds <= 0:
            logger.info("Availability sweeper disabled")
            return
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Availability sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Availability sweeper stopped")

    async def _run(self) -> None:
        while True:
            try:
                cleared = await self.sweep_once()
                if cleared:
                    logger.info(f"Sweeper cleared unavailability for: {', '.join(cleared)}")
            except Failure as e:
                logger.error(f"Availability sweep failed: {e}")
            await asyncio.sleep(self.interval_seconds)
