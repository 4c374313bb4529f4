"""
Partner job repository backed by the document store

Collections:
    partner_jobs            one document per job, keyed by booking id
    partner_earnings        one document per partner
    partner_availability    one document per partner
    partner_notifications   keyed by "<partnerId>_<jobId>"
    bookings                client bookings, status mirrored from jobs
"""

import functools
import logging
from contextlib import aclosing
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any, AsyncIterator

from carenow.core.config import Settings
from carenow.core.exceptions import Failure, NotFoundFailure, ServerFailure, ValidationFailure
from carenow.db.document_store import DocumentStore, DocumentSnapshot, Query, StoreTransaction, encode_value
from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.earnings import PartnerEarnings, DailyEarning, JobStatistics, PerformanceMetrics
from carenow.schemas.job import Job, JobStatus, JobPriority
from carenow.services.job_state_machine import JobAction, BOOKING_STATUS_FOR, transition
from carenow.utils.clock import Clock

logger = logging.getLogger(__name__)

JOBS_COLLECTION = "partner_jobs"
EARNINGS_COLLECTION = "partner_earnings"
AVAILABILITY_COLLECTION = "partner_availability"
NOTIFICATIONS_COLLECTION = "partner_notifications"
BOOKINGS_COLLECTION = "bookings"

ACTIVE_STATUSES = [JobStatus.ACCEPTED, JobStatus.IN_PROGRESS]
OPEN_STATUSES = [JobStatus.PENDING, JobStatus.ACCEPTED, JobStatus.IN_PROGRESS]

# Booking fields copied onto the job when it is created
_BOOKING_FIELDS = [
    "userId", "clientName", "clientPhone", "serviceId", "serviceName", "scheduledDate",
    "timeSlot", "hours", "totalPrice", "clientAddress", "clientLatitude", "clientLongitude",
    "specialInstructions", "isUrgent",
]


def store_operation(description: str):
    """Re-raise anything that is not already a Failure as ServerFailure("Failed to <description>: ...")"""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Failure:
                raise
            except Exception as e:
                logger.error(f"Failed to {description}: {e}")
                raise ServerFailure(f"Failed to {description}: {e}") from e
        return wrapper
    return decorator


def _jobs(snapshots: List[DocumentSnapshot]) -> List[Job]:
    return [Job.from_document(snapshot.id, snapshot.data) for snapshot in snapshots]


class StorePartnerJobRepository:
    """PartnerJobRepository over a DocumentStore"""

    def __init__(self, store: DocumentStore, clock: Clock, settings: Settings):
        self.store = store
        self.clock = clock
        self.settings = settings

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    @store_operation("create job from booking")
    async def create_job_from_booking(self, booking_id: str, partner_id: Optional[str] = None) -> Job:
        """
        Create the pending job for an assigned booking.

        The job id is the booking id, so assigning the same booking twice
        returns the existing job. The partner's share is the booking's
        total price minus the platform fee.

        Raises:
            NotFoundFailure: If the booking does not exist
            ValidationFailure: If no partner is assigned to the booking
        """
        async def operation(tx: StoreTransaction) -> Job:
            existing = await tx.get(JOBS_COLLECTION, booking_id)
            if existing is not None:
                logger.info(f"Job {booking_id} already exists, returning it")
                return Job.from_document(existing.id, existing.data)

            booking = await tx.get(BOOKINGS_COLLECTION, booking_id)
            if booking is None:
                raise NotFoundFailure(f"Booking {booking_id} not found")

            assigned_partner = partner_id or booking.data.get("partnerId")
            if not assigned_partner:
                raise ValidationFailure(f"Booking {booking_id} has no assigned partner")

            now = self.clock.now()
            fields = {key: booking.data[key] for key in _BOOKING_FIELDS if booking.data.get(key) is not None}
            total_price = float(booking.data.get("totalPrice") or 0)
            fields.setdefault("scheduledDate", now)

            job = Job.model_validate({
                **fields,
                "id": booking_id,
                "bookingId": booking_id,
                "partnerId": assigned_partner,
                "totalPrice": total_price,
                "partnerEarnings": round(total_price * (1 - self.settings.PLATFORM_FEE_RATE), 2),
                "status": JobStatus.PENDING,
                "priority": JobPriority.URGENT if fields.get("isUrgent") else JobPriority.NORMAL,
                "createdAt": now,
                "updatedAt": now,
            })
            await tx.compare_and_set(JOBS_COLLECTION, booking_id, job.to_document(), 0)
            await tx.compare_and_set(
                BOOKINGS_COLLECTION,
                booking_id,
                {**booking.data, "status": "assigned", "partnerId": assigned_partner, "updatedAt": encode_value(now)},
                booking.version
            )
            await tx.set(
                NOTIFICATIONS_COLLECTION,
                f"{assigned_partner}_{booking_id}",
                {
                    "partnerId": assigned_partner,
                    "jobId": booking_id,
                    "type": "new_job",
                    "isRead": False,
                    "createdAt": now,
                }
            )
            logger.info(f"Created job {booking_id} for partner {assigned_partner}")
            return job

        return await self.store.run_transaction(operation)

    @store_operation("get job")
    async def get_job(self, job_id: str) -> Job:
        snapshot = await self.store.get(JOBS_COLLECTION, job_id)
        if snapshot is None:
            raise NotFoundFailure(f"Job {job_id} not found")
        return Job.from_document(snapshot.id, snapshot.data)

    def _pending_query(self, partner_id: str) -> Query:
        return (
            Query(JOBS_COLLECTION)
            .where("partnerId", "==", partner_id)
            .where("status", "==", JobStatus.PENDING)
            .order_by("createdAt", descending=True)
        )

    def _accepted_query(self, partner_id: str) -> Query:
        return (
            Query(JOBS_COLLECTION)
            .where("partnerId", "==", partner_id)
            .where("status", "in", ACTIVE_STATUSES)
            .order_by("scheduledDate")
        )

    def _active_query(self, partner_id: str) -> Query:
        return (
            Query(JOBS_COLLECTION)
            .where("partnerId", "==", partner_id)
            .where("status", "in", OPEN_STATUSES)
            .order_by("scheduledDate")
        )

    @store_operation("get pending jobs")
    async def get_pending_jobs(self, partner_id: str) -> List[Job]:
        return _jobs(await self.store.query(self._pending_query(partner_id)))

    @store_operation("get accepted jobs")
    async def get_accepted_jobs(self, partner_id: str) -> List[Job]:
        return _jobs(await self.store.query(self._accepted_query(partner_id)))

    @store_operation("get job history")
    async def get_job_history(
        self,
        partner_id: str,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 20
    ) -> List[Job]:
        """Jobs of a partner by scheduled date, newest first"""
        query = Query(JOBS_COLLECTION).where("partnerId", "==", partner_id)
        if status is not None:
            query = query.where("status", "==", JobStatus.from_string(status))
        if start_date is not None:
            query = query.where("scheduledDate", ">=", start_date)
        if end_date is not None:
            query = query.where("scheduledDate", "<=", end_date)
        query = query.order_by("scheduledDate", descending=True).limit(limit)
        return _jobs(await self.store.query(query))

    async def _apply_action(
        self,
        job_id: str,
        partner_id: str,
        action: JobAction,
        reason: Optional[str] = None
    ) -> Job:
        """
        Apply a job action atomically: the job update, the booking status
        mirror and, on completion, the earnings accumulation commit together
        or not at all.
        """
        async def operation(tx: StoreTransaction) -> Job:
            snapshot = await tx.get(JOBS_COLLECTION, job_id)
            if snapshot is None:
                raise NotFoundFailure(f"Job {job_id} not found")

            job = Job.from_document(snapshot.id, snapshot.data)
            if job.partner_id != partner_id:
                raise ValidationFailure(f"Job {job_id} is not assigned to partner {partner_id}")

            now = self.clock.now()
            changes = transition(job, action, now, reason)
            written = await tx.compare_and_set(
                JOBS_COLLECTION,
                job_id,
                {**snapshot.data, **encode_value(changes)},
                snapshot.version
            )
            await self._mirror_booking_status(tx, job.booking_id, BOOKING_STATUS_FOR[action], now)

            if action == JobAction.COMPLETE:
                await self._accumulate_earnings(tx, partner_id, job.partner_earnings, now)

            return Job.from_document(job_id, written.data)

        updated = await self.store.run_transaction(operation)
        logger.info(f"Job {job_id} is now {updated.status.value} (partner {partner_id})")
        return updated

    async def _mirror_booking_status(self, tx: StoreTransaction, booking_id: str, status: str, now: datetime) -> None:
        booking = await tx.get(BOOKINGS_COLLECTION, booking_id)
        if booking is None:
            logger.warning(f"Booking {booking_id} not found, status '{status}' not mirrored")
            return
        await tx.compare_and_set(
            BOOKINGS_COLLECTION,
            booking_id,
            {**booking.data, "status": status, "updatedAt": encode_value(now)},
            booking.version
        )

    @store_operation("accept job")
    async def accept_job(self, job_id: str, partner_id: str) -> Job:
        return await self._apply_action(job_id, partner_id, JobAction.ACCEPT)

    @store_operation("reject job")
    async def reject_job(self, job_id: str, partner_id: str, reason: str) -> Job:
        return await self._apply_action(job_id, partner_id, JobAction.REJECT, reason)

    @store_operation("start job")
    async def start_job(self, job_id: str, partner_id: str) -> Job:
        return await self._apply_action(job_id, partner_id, JobAction.START)

    @store_operation("complete job")
    async def complete_job(self, job_id: str, partner_id: str) -> Job:
        return await self._apply_action(job_id, partner_id, JobAction.COMPLETE)

    @store_operation("cancel job")
    async def cancel_job(self, job_id: str, partner_id: str, reason: str) -> Job:
        return await self._apply_action(job_id, partner_id, JobAction.CANCEL, reason)

    # ------------------------------------------------------------------
    # Live updates
    # ------------------------------------------------------------------

    async def _listen(self, query: Query, description: str) -> AsyncIterator[List[Job]]:
        try:
            async with aclosing(self.store.snapshots(query)) as results:
                async for snapshots in results:
                    yield _jobs(snapshots)
        except Failure:
            raise
        except Exception as e:
            logger.error(f"Failed to {description}: {e}")
            raise ServerFailure(f"Failed to {description}: {e}") from e

    def listen_to_pending_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        return self._listen(self._pending_query(partner_id), "listen to pending jobs")

    def listen_to_accepted_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        return self._listen(self._accepted_query(partner_id), "listen to accepted jobs")

    def listen_to_active_jobs(self, partner_id: str) -> AsyncIterator[List[Job]]:
        return self._listen(self._active_query(partner_id), "listen to active jobs")

    async def listen_to_job(self, job_id: str) -> AsyncIterator[Job]:
        """Current job, then the job again after every change; stops if it disappears"""
        try:
            async with aclosing(self.store.document_snapshots(JOBS_COLLECTION, job_id)) as results:
                async for snapshot in results:
                    if snapshot is None:
                        raise NotFoundFailure(f"Job {job_id} not found")
                    yield Job.from_document(snapshot.id, snapshot.data)
        except Failure:
            raise
        except Exception as e:
            logger.error(f"Failed to listen to job: {e}")
            raise ServerFailure(f"Failed to listen to job: {e}") from e

    # ------------------------------------------------------------------
    # Earnings
    # ------------------------------------------------------------------

    async def _load_earnings(self, tx: StoreTransaction, partner_id: str, now: datetime) -> PartnerEarnings:
        snapshot = await tx.get(EARNINGS_COLLECTION, partner_id)
        if snapshot is not None:
            return PartnerEarnings.from_document(snapshot.id, snapshot.data, snapshot.version)

        earnings = PartnerEarnings.default_for(partner_id, now, self.settings.PLATFORM_FEE_RATE)
        written = await tx.compare_and_set(EARNINGS_COLLECTION, partner_id, earnings.to_document(), 0)
        logger.info(f"Created default earnings for partner {partner_id}")
        return PartnerEarnings.from_document(partner_id, written.data, written.version)

    async def _accumulate_earnings(
        self,
        tx: StoreTransaction,
        partner_id: str,
        job_earnings: float,
        now: datetime
    ) -> PartnerEarnings:
        """
        Add one completed job to the partner's counters.

        Today counters accumulate within the same business-timezone calendar
        day and restart from this job otherwise. Week and month counters are
        left untouched.
        """
        earnings = await self._load_earnings(tx, partner_id, now)

        if self.clock.is_same_day(earnings.last_updated, now):
            today_earnings = earnings.today_earnings + job_earnings
            today_jobs = earnings.today_jobs + 1
        else:
            today_earnings = job_earnings
            today_jobs = 1

        updated = earnings.model_copy(update={
            "total_earnings": earnings.total_earnings + job_earnings,
            "total_jobs": earnings.total_jobs + 1,
            "today_earnings": today_earnings,
            "today_jobs": today_jobs,
            "last_updated": now,
        })
        written = await tx.compare_and_set(EARNINGS_COLLECTION, partner_id, updated.to_document(), earnings.version)
        logger.info(f"Added {job_earnings} to earnings of partner {partner_id} (total {updated.total_earnings})")
        return PartnerEarnings.from_document(partner_id, written.data, written.version)

    @store_operation("get partner earnings")
    async def get_partner_earnings(self, partner_id: str) -> PartnerEarnings:
        now = self.clock.now()
        return await self.store.run_transaction(lambda tx: self._load_earnings(tx, partner_id, now))

    @store_operation("update partner earnings")
    async def update_partner_earnings(self, partner_id: str, job_earnings: float) -> PartnerEarnings:
        now = self.clock.now()
        return await self.store.run_transaction(
            lambda tx: self._accumulate_earnings(tx, partner_id, job_earnings, now)
        )

    @store_operation("get earnings by date range")
    async def get_earnings_by_date_range(
        self,
        partner_id: str,
        start_date: datetime,
        end_date: datetime
    ) -> List[DailyEarning]:
        """Completed-job earnings grouped by business-timezone day, oldest first"""
        query = (
            Query(JOBS_COLLECTION)
            .where("partnerId", "==", partner_id)
            .where("status", "==", JobStatus.COMPLETED)
            .where("completedAt", ">=", start_date)
            .where("completedAt", "<=", end_date)
            .order_by("completedAt")
        )
        daily: Dict[Any, DailyEarning] = {}
        for job in _jobs(await self.store.query(query)):
            if job.completed_at is None:
                continue
            day = self.clock.local_date(job.completed_at)
            bucket = daily.setdefault(day, DailyEarning(day=day))
            bucket.earnings += job.partner_earnings
            bucket.jobs_completed += 1
            bucket.hours_worked += job.hours
        return [daily[day] for day in sorted(daily)]

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def _load_availability(self, tx: StoreTransaction, partner_id: str, now: datetime) -> DocumentSnapshot:
        snapshot = await tx.get(AVAILABILITY_COLLECTION, partner_id)
        if snapshot is not None:
            return snapshot

        availability = PartnerAvailability.default_for(partner_id, now, self.settings.DEFAULT_WORKING_HOURS_SLOTS)
        logger.info(f"Created default availability for partner {partner_id}")
        return await tx.compare_and_set(AVAILABILITY_COLLECTION, partner_id, availability.to_document(), 0)

    async def _update_availability(self, partner_id: str, changes) -> PartnerAvailability:
        """
        Read-modify-write of the availability document in one transaction.

        `changes` maps the current document data to the fields to overwrite.
        """
        now = self.clock.now()

        async def operation(tx: StoreTransaction) -> PartnerAvailability:
            snapshot = await self._load_availability(tx, partner_id, now)
            fields = {**changes(snapshot.data), "lastUpdated": now}
            written = await tx.compare_and_set(
                AVAILABILITY_COLLECTION,
                partner_id,
                {**snapshot.data, **encode_value(fields)},
                snapshot.version
            )
            return PartnerAvailability.from_document(partner_id, written.data)

        return await self.store.run_transaction(operation)

    @store_operation("get partner availability")
    async def get_partner_availability(self, partner_id: str) -> PartnerAvailability:
        now = self.clock.now()
        snapshot = await self.store.run_transaction(lambda tx: self._load_availability(tx, partner_id, now))
        return PartnerAvailability.from_document(snapshot.id, snapshot.data)

    @store_operation("update availability status")
    async def update_availability_status(
        self,
        partner_id: str,
        is_available: bool,
        reason: Optional[str] = None
    ) -> PartnerAvailability:
        """Becoming available ends any temporary unavailability window"""
        def changes(data):
            if is_available:
                return {"isAvailable": True, "unavailableUntil": None, "unavailabilityReason": None}
            return {"isAvailable": False, "unavailabilityReason": reason}

        return await self._update_availability(partner_id, changes)

    @store_operation("update online status")
    async def update_online_status(self, partner_id: str, is_online: bool) -> PartnerAvailability:
        now = self.clock.now()
        return await self._update_availability(partner_id, lambda data: {
            "isOnline": is_online,
            "lastSeen": now,
        })

    @store_operation("update working hours")
    async def update_working_hours(self, partner_id: str, working_hours: Dict[str, List[str]]) -> PartnerAvailability:
        return await self._update_availability(partner_id, lambda data: {"workingHours": working_hours})

    @store_operation("block dates")
    async def block_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability:
        return await self._update_availability(partner_id, lambda data: {
            "blockedDates": sorted(set(data.get("blockedDates") or []) | set(dates)),
        })

    @store_operation("unblock dates")
    async def unblock_dates(self, partner_id: str, dates: List[str]) -> PartnerAvailability:
        return await self._update_availability(partner_id, lambda data: {
            "blockedDates": [day for day in data.get("blockedDates") or [] if day not in dates],
        })

    @store_operation("set temporary unavailability")
    async def set_temporary_unavailability(
        self,
        partner_id: str,
        unavailable_until: datetime,
        reason: str
    ) -> PartnerAvailability:
        return await self._update_availability(partner_id, lambda data: {
            "isAvailable": False,
            "unavailableUntil": unavailable_until,
            "unavailabilityReason": reason,
        })

    @store_operation("clear temporary unavailability")
    async def clear_temporary_unavailability(self, partner_id: str) -> PartnerAvailability:
        return await self._update_availability(partner_id, lambda data: {
            "isAvailable": True,
            "unavailableUntil": None,
            "unavailabilityReason": None,
        })

    @store_operation("clear expired unavailability")
    async def clear_expired_unavailability(self, now: Optional[datetime] = None) -> List[str]:
        """
        Clear every temporary unavailability window that has ended.

        Returns:
            Ids of the partners whose window was cleared
        """
        now = now or self.clock.now()
        expired = await self.store.query(
            Query(AVAILABILITY_COLLECTION).where("unavailableUntil", "<=", now)
        )

        cleared = []
        for snapshot in expired:
            async def operation(tx: StoreTransaction, partner_id: str = snapshot.id) -> bool:
                current = await tx.get(AVAILABILITY_COLLECTION, partner_id)
                if current is None:
                    return False
                availability = PartnerAvailability.from_document(current.id, current.data)
                # Extended or cleared since the query ran
                if not availability.has_expired_unavailability(now):
                    return False
                await tx.compare_and_set(
                    AVAILABILITY_COLLECTION,
                    partner_id,
                    {
                        **current.data,
                        "isAvailable": True,
                        "unavailableUntil": None,
                        "unavailabilityReason": None,
                        "lastUpdated": encode_value(now),
                    },
                    current.version
                )
                return True

            if await self.store.run_transaction(operation):
                cleared.append(snapshot.id)

        if cleared:
            logger.info(f"Cleared expired unavailability for {len(cleared)} partner(s)")
        return cleared

    # ------------------------------------------------------------------
    # Statistics and notifications
    # ------------------------------------------------------------------

    @store_operation("get job statistics")
    async def get_job_statistics(
        self,
        partner_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> JobStatistics:
        """
        Counts per status plus earnings, hours and rates over jobs created in the range.

        acceptanceRate is the share of jobs not rejected; completionRate is the
        share of completed jobs among those the partner took on (accepted,
        in progress or completed).
        """
        query = Query(JOBS_COLLECTION).where("partnerId", "==", partner_id)
        if start_date is not None:
            query = query.where("createdAt", ">=", start_date)
        if end_date is not None:
            query = query.where("createdAt", "<=", end_date)
        jobs = _jobs(await self.store.query(query))

        counts = {status: 0 for status in JobStatus}
        for job in jobs:
            counts[job.status] += 1
        completed = [job for job in jobs if job.status == JobStatus.COMPLETED]
        taken_on = counts[JobStatus.ACCEPTED] + counts[JobStatus.IN_PROGRESS] + counts[JobStatus.COMPLETED]

        return JobStatistics(
            total_jobs=len(jobs),
            pending_jobs=counts[JobStatus.PENDING],
            accepted_jobs=counts[JobStatus.ACCEPTED],
            in_progress_jobs=counts[JobStatus.IN_PROGRESS],
            completed_jobs=counts[JobStatus.COMPLETED],
            rejected_jobs=counts[JobStatus.REJECTED],
            cancelled_jobs=counts[JobStatus.CANCELLED],
            total_earnings=sum(job.partner_earnings for job in completed),
            total_hours=sum(job.hours for job in completed),
            acceptance_rate=(len(jobs) - counts[JobStatus.REJECTED]) / len(jobs) * 100 if jobs else 0.0,
            completion_rate=counts[JobStatus.COMPLETED] / taken_on * 100 if taken_on else 0.0,
        )

    @store_operation("get performance metrics")
    async def get_performance_metrics(self, partner_id: str) -> PerformanceMetrics:
        earnings = await self.get_partner_earnings(partner_id)
        stats = await self.get_job_statistics(partner_id)

        now = self.clock.now()
        today = self.clock.local_date(now)
        daily = await self.get_earnings_by_date_range(partner_id, now - timedelta(days=14), now)
        this_week = sum(day.earnings for day in daily if (today - day.day).days < 7)
        last_week = sum(day.earnings for day in daily if 7 <= (today - day.day).days < 14)

        return PerformanceMetrics(
            total_earnings=earnings.total_earnings,
            average_rating=earnings.average_rating,
            total_reviews=earnings.total_reviews,
            total_jobs=earnings.total_jobs,
            acceptance_rate=stats.acceptance_rate,
            completion_rate=stats.completion_rate,
            average_earnings_per_job=earnings.average_earnings_per_job,
            weekly_growth=(this_week - last_week) / last_week * 100 if last_week else 0.0,
        )

    @store_operation("get unread notifications count")
    async def get_unread_notifications_count(self, partner_id: str) -> int:
        return await self.store.count(
            Query(NOTIFICATIONS_COLLECTION)
            .where("partnerId", "==", partner_id)
            .where("isRead", "==", False)
        )

    @store_operation("mark notification as read")
    async def mark_job_notification_as_read(self, partner_id: str, job_id: str) -> None:
        await self.store.update(
            NOTIFICATIONS_COLLECTION,
            f"{partner_id}_{job_id}",
            {"isRead": True, "readAt": self.clock.now()}
        )
