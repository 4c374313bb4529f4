"""
Partner job use cases

Validates partner input and delegates to the repository. Validation
failures are raised before any store access.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, AsyncIterator

from carenow.core.exceptions import NotFoundFailure, ValidationFailure
from carenow.repositories.partner_job_repository import PartnerJobRepository
from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.earnings import (
    EarningsWindow,
    PartnerEarnings,
    WindowTotals,
    DailyEarning,
    JobStatistics,
    PerformanceMetrics,
)
from carenow.schemas.job import Job, JobStatus
from carenow.services.validation import (
    validate_partner_id,
    validate_job_id,
    validate_reason,
    validate_working_hours,
    validate_dates,
)

logger = logging.getLogger(__name__)


def _validate_range(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is None or end_date is None:
        return
    # Naive datetimes are UTC
    start = start_date if start_date.tzinfo else start_date.replace(tzinfo=timezone.utc)
    end = end_date if end_date.tzinfo else end_date.replace(tzinfo=timezone.utc)
    if start > end:
        raise ValidationFailure("Start date must not be after end date")


class PartnerJobService:
    """Entry point for every partner job, earnings and availability operation"""

    def __init__(self, repository: PartnerJobRepository):
        self.repository = repository

    # Jobs

    async def create_job_from_booking(self, booking_id: str, partner_id: Optional[str] = None) -> Job:
        if not booking_id or not booking_id.strip():
            raise ValidationFailure("Booking ID cannot be empty")
        if partner_id is not None:
            validate_partner_id(partner_id)
        return await self.repository.create_job_from_booking(booking_id, partner_id)

    async def get_job(self, partner_id: str, job_id: str) -> Job:
        """
        Get one of the partner's jobs.

        Raises:
            NotFoundFailure: If the job does not exist or belongs to another partner
        """
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        job = await self.repository.get_job(job_id)
        if job.partner_id != partner_id:
            # Other partners' jobs are reported as missing
            raise NotFoundFailure(f"Job {job_id} not found")
        return job

    async def get_pending_jobs(self, partner_id: str) -> List[Job]:
        validate_partner_id(partner_id)
        return await self.repository.get_pending_jobs(partner_id)

    async def get_accepted_jobs(self, partner_id: str) -> List[Job]:
        validate_partner_id(partner_id)
        return await self.repository.get_accepted_jobs(partner_id)

    async def get_job_history(
        self,
        partner_id: str,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 20
    ) -> List[Job]:
        validate_partner_id(partner_id)
        _validate_range(start_date, end_date)
        if limit <= 0:
            raise ValidationFailure("Limit must be positive")
        if status is not None:
            try:
                JobStatus.from_string(status)
            except ValueError as e:
                raise ValidationFailure(str(e)) from e
        return await self.repository.get_job_history(partner_id, status, start_date, end_date, limit)

    async def accept_job(self, partner_id: str, job_id: str) -> Job:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        logger.info(f"Partner {partner_id} accepting job {job_id}")
        return await self.repository.accept_job(job_id, partner_id)

    async def reject_job(self, partner_id: str, job_id: str, reason: str) -> Job:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        validate_reason(reason)
        logger.info(f"Partner {partner_id} rejecting job {job_id}: {reason}")
        return await self.repository.reject_job(job_id, partner_id, reason)

    async def start_job(self, partner_id: str, job_id: str) -> Job:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        logger.info(f"Partner {partner_id} starting job {job_id}")
        return await self.repository.start_job(job_id, partner_id)

    async def complete_job(self, partner_id: str, job_id: str) -> Job:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        logger.info(f"Partner {partner_id} completing job {job_id}")
        return await self.repository.complete_job(job_id, partner_id)

    async def cancel_job(self, partner_id: str, job_id: str, reason: str) -> Job:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        validate_reason(reason)
        logger.info(f"Partner {partner_id} cancelling job {job_id}: {reason}")
        return await self.repository.cancel_job(job_id, partner_id, reason)

    # Live updates

    def listen_to_pending_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        validate_partner_id(partner_id)
        return self.repository.listen_to_pending_jobs(partner_id)

    def listen_to_accepted_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        validate_partner_id(partner_id)
        return self.repository.listen_to_accepted_jobs(partner_id)

    def listen_to_active_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        validate_partner_id(partner_id)
        return self.repository.listen_to_active_jobs(partner_id)

    def listen_to_job(self, job_id: str) -> AsyncIterator[Job]:
        validate_job_id(job_id)
        return self.repository.listen_to_job(job_id)

    # Earnings

    async def get_partner_earnings(self, partner_id: str) -> PartnerEarnings:
        validate_partner_id(partner_id)
        return await self.repository.get_partner_earnings(partner_id)

    async def get_earnings_window(self, partner_id: str, window: str) -> WindowTotals:
        """
        Earnings for one window.

        Raises:
            ValidationFailure: If the window name is unknown
            UnsupportedEarningsWindowError: For week and month windows
        """
        validate_partner_id(partner_id)
        try:
            earnings_window = EarningsWindow(window)
        except ValueError as e:
            raise ValidationFailure(f"Unknown earnings window: {window}") from e
        earnings = await self.repository.get_partner_earnings(partner_id)
        return earnings.window_totals(earnings_window)

    async def get_earnings_by_date_range(
        self,
        partner_id: str,
        start_date: datetime,
        end_date: datetime
    ) -> List[DailyEarning]:
        validate_partner_id(partner_id)
        _validate_range(start_date, end_date)
        return await self.repository.get_earnings_by_date_range(partner_id, start_date, end_date)

    async def get_job_statistics(
        self,
        partner_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> JobStatistics:
        validate_partner_id(partner_id)
        _validate_range(start_date, end_date)
        return await self.repository.get_job_statistics(partner_id, start_date, end_date)

    async def get_performance_metrics(self, partner_id: str) -> PerformanceMetrics:
        validate_partner_id(partner_id)
        return await self.repository.get_performance_metrics(partner_id)

    # Availability

    async def get_partner_availability(self, partner_id: str) -> PartnerAvailability:
        validate_partner_id(partner_id)
        return await self.repository.get_partner_availability(partner_id)

    async def update_availability_status(
        self,
        partner_id: str,
        is_available: bool,
        reason: Optional[str] = None
    ) -> PartnerAvailability:
        validate_partner_id(partner_id)
        logger.info(f"Partner {partner_id} availability -> {is_available}")
        return await self.repository.update_availability_status(partner_id, is_available, reason)

    async def update_online_status(self, partner_id: str, is_online: bool) -> PartnerAvailability:
        validate_partner_id(partner_id)
        return await self.repository.update_online_status(partner_id, is_online)

    async def update_working_hours(self, partner_id: str, working_hours: Dict[str, List[str]]) -> PartnerAvailability:
        validate_partner_id(partner_id)
        validate_working_hours(working_hours)
        normalized = {day.lower(): slots for day, slots in working_hours.items()}
        logger.info(f"Partner {partner_id} updating working hours")
        return await self.repository.update_working_hours(partner_id, normalized)

    async def block_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability:
        validate_partner_id(partner_id)
        validate_dates(dates)
        return await self.repository.block_dates(partner_id, dates)

    async def unblock_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability:
        validate_partner_id(partner_id)
        validate_dates(dates)
        return await self.repository.unblock_dates(partner_id, dates)

    async def set_temporary_unavailability(
        self,
        partner_id: str,
        unavailable_until: datetime,
        reason: str
    ) -> PartnerAvailability:
        validate_partner_id(partner_id)
        validate_reason(reason)
        logger.info(f"Partner {partner_id} unavailable until {unavailable_until.isoformat()}: {reason}")
        return await self.repository.set_temporary_unavailability(partner_id, unavailable_until, reason)

    async def clear_temporary_unavailability(self, partner_id: str) -> PartnerAvailability:
        validate_partner_id(partner_id)
        return await self.repository.clear_temporary_unavailability(partner_id)

    async def clear_expired_unavailability(self, now: Optional[datetime] = None) -> List[str]:
        return await self.repository.clear_expired_unavailability(now)

    # Notifications

    async def get_unread_notifications_count(self, partner_id: str) -> int:
        validate_partner_id(partner_id)
        return await self.repository.get_unread_notifications_count(partner_id)

    async def mark_job_notification_as_read(self, partner_id: str, job_id: str) -> None:
        validate_partner_id(partner_id)
        validate_job_id(job_id)
        await self.repository.mark_job_notification_as_read(partner_id, job_id)
