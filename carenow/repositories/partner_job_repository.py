"""
Partner job repository interface
"""

from datetime import datetime
from typing import Optional, List, Dict, AsyncIterator, Protocol

from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.earnings import PartnerEarnings, DailyEarning, JobStatistics, PerformanceMetrics
from carenow.schemas.job import Job


class PartnerJobRepository(Protocol):
    """
    Data access for partner jobs, earnings and availability.

    Every operation returns its value or raises a Failure: NotFoundFailure
    for missing documents, InvalidJobTransitionError for illegal job moves
    and ServerFailure for anything the store raises.
    """

    # Jobs
    async def create_job_from_booking(self, booking_id: str, partner_id: Optional[str] = None) -> Job: ...

    async def get_job(self, job_id: str) -> Job: ...

    async def get_pending_jobs(self, partner_id: str) -> List[Job]: ...

    async def get_accepted_jobs(self, partner_id: str) -> List[Job]: ...

    async def get_job_history(
        self,
        partner_id: str,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 20
    ) -> List[Job]: ...

    async def accept_job(self, job_id: str, partner_id: str) -> Job: ...

    async def reject_job(self, job_id: str, partner_id: str, reason: str) -> Job: ...

    async def start_job(self, job_id: str, partner_id: str) -> Job: ...

    async def complete_job(self, job_id: str, partner_id: str) -> Job: ...

    async def cancel_job(self, job_id: str, partner_id: str, reason: str) -> Job: ...

    # Live updates
    def listen_to_pending_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]: ...

    def listen_to_accepted_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]: ...

    def listen_to_active_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]: ...

    def listen_to_job(self, job_id: str) -> AsyncIterator[Job]: ...

    # Earnings
    async def get_partner_earnings(self, partner_id: str) -> PartnerEarnings: ...

    async def update_partner_earnings(self, partner_id: str, job_earnings: float) -> PartnerEarnings: ...

    async def get_earnings_by_date_range(
        self,
        partner_id: str,
        start_date: datetime,
        end_date: datetime
    ) -> List[DailyEarning]: ...

    # Availability
    async def get_partner_availability(self, partner_id: str) -> PartnerAvailability: ...

    async def update_availability_status(
        self,
        partner_id: str,
        is_available: bool,
        reason: Optional[str] = None
    ) -> PartnerAvailability: ...

    async def update_online_status(self, partner_id: str, is_online: bool) -> PartnerAvailability: ...

    async def update_working_hours(self, partner_id: str, working_hours: Dict[str, List[str]]) -> PartnerAvailability: ...

    async def block_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability: ...

    async def unblock_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability: ...

    async def set_temporary_unavailability(
        self,
        partner_id: str,
        unavailable_until: datetime,
        reason: str
    ) -> PartnerAvailability: ...

    async def clear_temporary_unavailability(self, partner_id: str) -> PartnerAvailability: ...

    async def clear_expired_unavailability(self, now: Optional[datetime] = None) -> List[str]: ...

    # Statistics and notifications
    async def get_job_statistics(
        self,
        partner_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> JobStatistics: ...

    async def get_performance_metrics(self, partner_id: str) -> PerformanceMetrics: ...

    async def get_unread_notifications_count(self, partner_id: str) -> int: ...

    async def mark_job_notification_as_read(self, partner_id: str, job_id: str) -> None: ...
