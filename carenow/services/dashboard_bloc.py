"""
Partner dashboard orchestrator

Events are queued with add() and handled one at a time by a worker task.
Each handler calls the partner job service and emits states to every
subscriber. Live job subscriptions run as separate tasks and patch the
loaded dashboard as updates arrive.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Optional, List, Dict, Any, Set, AsyncIterator, Awaitable, Callable
from typing import assert_never

from carenow.core.config import Settings
from carenow.core.exceptions import Failure
from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.dashboard import (
    DashboardEvent,
    DashboardState,
    LoadPartnerDashboard,
    RefreshPartnerDashboard,
    StartListeningToUpdates,
    StopListeningToUpdates,
    AcceptJob,
    RejectJob,
    StartJob,
    CompleteJob,
    CancelJob,
    ToggleAvailability,
    UpdateOnlineStatus,
    UpdateWorkingHours,
    SetTemporaryUnavailability,
    ClearTemporaryUnavailability,
    LoadEarnings,
    LoadEarningsByDateRange,
    LoadJobStatistics,
    LoadPerformanceMetrics,
    MarkJobNotificationAsRead,
    LoadUnreadNotificationsCount,
    ClearError,
    RetryOperation,
    DashboardInitial,
    DashboardLoading,
    DashboardLoaded,
    DashboardError,
    DashboardRefreshing,
    JobOperationInProgress,
    JobOperationSuccess,
    JobOperationError,
    AvailabilityUpdateInProgress,
    AvailabilityUpdateSuccess,
    AvailabilityUpdateError,
    EarningsLoading,
    EarningsLoaded,
    EarningsError,
    StatisticsLoading,
    StatisticsLoaded,
    StatisticsError,
    UnreadNotificationsCountUpdated,
)
from carenow.schemas.job import Job
from carenow.services.partner_job_service import PartnerJobService

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load dashboard data"


def describe_state(state: DashboardState) -> str:
    """One-line summary of a dashboard state"""
    match state:
        case DashboardInitial():
            return "Dashboard not loaded"
        case DashboardLoading():
            return "Loading dashboard"
        case DashboardLoaded():
            return (
                f"{len(state.pending_jobs)} pending, {len(state.active_jobs)} active jobs; "
                f"{state.unread_notifications_count} unread notifications"
            )
        case DashboardError():
            return f"Error: {state.message}"
        case DashboardRefreshing():
            return "Refreshing dashboard"
        case JobOperationInProgress():
            return f"Job {state.job_id}: {state.operation}"
        case JobOperationSuccess():
            return state.message
        case JobOperationError():
            return f"Job {state.job_id} {state.operation} failed: {state.message}"
        case AvailabilityUpdateInProgress():
            return f"Availability: {state.operation}"
        case AvailabilityUpdateSuccess():
            return state.message
        case AvailabilityUpdateError():
            return f"Availability update failed: {state.message}"
        case EarningsLoading():
            return "Loading earnings"
        case EarningsLoaded():
            return f"Total earnings {state.earnings.total_earnings:.0f}k VND"
        case EarningsError():
            return f"Earnings error: {state.message}"
        case StatisticsLoading():
            return "Loading statistics"
        case StatisticsLoaded():
            return f"{state.statistics.total_jobs} jobs, {state.statistics.completion_rate:.1f}% completed"
        case StatisticsError():
            return f"Statistics error: {state.message}"
        case UnreadNotificationsCountUpdated():
            return f"{state.count} unread notifications"
        case _:
            assert_never(state)


def state_payload(state: DashboardState) -> Dict[str, Any]:
    """JSON-ready form of a state, as pushed to WebSocket clients"""
    return {**state.model_dump(mode="json", by_alias=True), "summary": describe_state(state)}


class PartnerDashboardBloc:
    """
    Event-driven state holder for one partner dashboard.

    Example:
        bloc = container.dashboard_bloc("partner-1")
        bloc.add(LoadPartnerDashboard(partner_id="partner-1"))
        await bloc.drain()
        print(describe_state(bloc.state))
        await bloc.close()
    """

    def __init__(self, service: PartnerJobService, settings: Settings, partner_id: Optional[str] = None):
        self.service = service
        self.settings = settings
        self.partner_id = partner_id
        self._state: DashboardState = DashboardInitial()
        self._last_loaded: Optional[DashboardLoaded] = None
        self._events: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._subscribers: Set[asyncio.Queue] = set()
        self._subscriptions: Dict[str, asyncio.Task] = {}
        self._closed = False

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return any(not task.done() for task in self._subscriptions.values())

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Event queue and state fan-out
    # ------------------------------------------------------------------

    def add(self, event: DashboardEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot add events to a closed dashboard")
        self._events.put_nowait(event)
        if self._worker is None:
            self._worker = asyncio.create_task(self._process_events())

    async def drain(self) -> None:
        """Wait until every queued event, and the events they queued, are handled"""
        await self._events.join()

    def subscribe(self) -> asyncio.Queue:
        """Queue receiving every state emitted from now on; None marks the end"""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def stream(self) -> AsyncIterator[DashboardState]:
        """Emitted states until the dashboard is closed"""
        queue = self.subscribe()
        try:
            while True:
                state = await queue.get()
                if state is None:
                    return
                yield state
        finally:
            self.unsubscribe(queue)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._cancel_subscriptions()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        for queue in list(self._subscribers):
            queue.put_nowait(None)
        logger.debug(f"Dashboard for partner {self.partner_id} closed")

    def _emit(self, state: DashboardState) -> None:
        self._state = state
        if isinstance(state, DashboardLoaded):
            self._last_loaded = state
        for queue in list(self._subscribers):
            queue.put_nowait(state)

    def _loaded_snapshot(self) -> Optional[DashboardLoaded]:
        if isinstance(self._state, DashboardLoaded):
            return self._state
        if isinstance(self._state, DashboardRefreshing):
            return self._state.current
        return self._last_loaded

    async def _process_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._handle(event)
            except Failure as e:
                logger.error(f"Dashboard event {event.kind} failed: {e}")
                self._emit(DashboardError(message=e.message))
            except Exception as e:
                logger.exception(f"Unexpected error handling dashboard event {event.kind}")
                self._emit(DashboardError(message=f"Unexpected error: {e}"))
            finally:
                self._events.task_done()

    async def _handle(self, event: DashboardEvent) -> None:
        match event:
            case LoadPartnerDashboard():
                await self._on_load(event)
            case RefreshPartnerDashboard():
                self._on_refresh(event)
            case StartListeningToUpdates():
                await self._on_start_listening(event)
            case StopListeningToUpdates():
                await self._on_stop_listening()
            case AcceptJob():
                await self._run_job_action(
                    event.job_id, event.partner_id, "accepting", "Job accepted successfully",
                    lambda: self.service.accept_job(event.partner_id, event.job_id)
                )
            case RejectJob():
                await self._run_job_action(
                    event.job_id, event.partner_id, "rejecting", "Job rejected successfully",
                    lambda: self.service.reject_job(event.partner_id, event.job_id, event.rejection_reason)
                )
            case StartJob():
                await self._run_job_action(
                    event.job_id, event.partner_id, "starting", "Job started successfully",
                    lambda: self.service.start_job(event.partner_id, event.job_id)
                )
            case CompleteJob():
                await self._run_job_action(
                    event.job_id, event.partner_id, "completing", "Job completed successfully",
                    lambda: self.service.complete_job(event.partner_id, event.job_id)
                )
            case CancelJob():
                await self._run_job_action(
                    event.job_id, event.partner_id, "cancelling", "Job cancelled successfully",
                    lambda: self.service.cancel_job(event.partner_id, event.job_id, event.cancellation_reason)
                )
            case ToggleAvailability():
                await self._run_availability_update(
                    "toggling",
                    "You are now available" if event.is_available else "You are now unavailable",
                    lambda: self.service.update_availability_status(event.partner_id, event.is_available, event.reason)
                )
            case UpdateOnlineStatus():
                await self._on_update_online_status(event)
            case UpdateWorkingHours():
                await self._run_availability_update(
                    "updating_hours",
                    "Working hours updated successfully",
                    lambda: self.service.update_working_hours(event.partner_id, event.working_hours)
                )
            case SetTemporaryUnavailability():
                await self._run_availability_update(
                    "setting_unavailable",
                    "Temporary unavailability set",
                    lambda: self.service.set_temporary_unavailability(
                        event.partner_id, event.unavailable_until, event.reason
                    )
                )
            case ClearTemporaryUnavailability():
                await self._run_availability_update(
                    "clearing_unavailable",
                    "Temporary unavailability cleared",
                    lambda: self.service.clear_temporary_unavailability(event.partner_id)
                )
            case LoadEarnings():
                await self._on_load_earnings(event)
            case LoadEarningsByDateRange():
                await self._on_load_earnings_by_date_range(event)
            case LoadJobStatistics():
                await self._on_load_job_statistics(event)
            case LoadPerformanceMetrics():
                await self._on_load_performance_metrics(event)
            case MarkJobNotificationAsRead():
                await self._on_mark_notification_read(event)
            case LoadUnreadNotificationsCount():
                await self._on_load_unread_count(event)
            case ClearError():
                if isinstance(self._state, DashboardError):
                    self._emit(DashboardInitial())
            case RetryOperation():
                partner_id = event.partner_id or self.partner_id
                if partner_id:
                    self.add(LoadPartnerDashboard(partner_id=partner_id))
            case _:
                assert_never(event)

    # ------------------------------------------------------------------
    # Dashboard loading and live updates
    # ------------------------------------------------------------------

    async def _on_load(self, event: LoadPartnerDashboard) -> None:
        partner_id = event.partner_id
        self.partner_id = partner_id
        self._emit(DashboardLoading())

        results = await asyncio.gather(
            self.service.get_pending_jobs(partner_id),
            self.service.get_accepted_jobs(partner_id),
            self.service.get_job_history(partner_id, limit=self.settings.JOB_HISTORY_DASHBOARD_LIMIT),
            self.service.get_partner_earnings(partner_id),
            self.service.get_partner_availability(partner_id),
            self.service.get_unread_notifications_count(partner_id),
            return_exceptions=True
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            for failure in failures:
                logger.error(f"Dashboard load for partner {partner_id} failed: {failure}")
            self._emit(DashboardError(message=LOAD_FAILED_MESSAGE))
            return

        pending_jobs, accepted_jobs, history, earnings, availability, unread_count = results

        # Accepted jobs plus accepted / in-progress jobs from recent history
        active_jobs: List[Job] = list(accepted_jobs)
        seen = {job.id for job in active_jobs}
        for job in history:
            if job.is_active and job.id not in seen:
                active_jobs.append(job)
                seen.add(job.id)

        self._emit(DashboardLoaded(
            pending_jobs=pending_jobs,
            accepted_jobs=accepted_jobs,
            active_jobs=active_jobs,
            earnings=earnings,
            availability=availability,
            unread_notifications_count=unread_count,
            is_listening_to_updates=self.is_listening,
        ))

    def _on_refresh(self, event: RefreshPartnerDashboard) -> None:
        current = self._loaded_snapshot()
        if current is not None:
            self._emit(DashboardRefreshing(current=current))
        self.add(LoadPartnerDashboard(partner_id=event.partner_id))

    async def _on_start_listening(self, event: StartListeningToUpdates) -> None:
        await self._cancel_subscriptions()
        partner_id = event.partner_id
        self.partner_id = partner_id

        streams = {
            "pending_jobs": self.service.listen_to_pending_jobs(partner_id),
            "accepted_jobs": self.service.listen_to_accepted_jobs(partner_id),
            "active_jobs": self.service.listen_to_active_jobs(partner_id),
        }
        self._subscriptions = {
            field: asyncio.create_task(self._follow(field, stream, partner_id))
            for field, stream in streams.items()
        }
        logger.info(f"Listening to job updates for partner {partner_id}")

        if isinstance(self._state, DashboardLoaded):
            self._emit(self._state.model_copy(update={"is_listening_to_updates": True}))

    async def _on_stop_listening(self) -> None:
        await self._cancel_subscriptions()
        if isinstance(self._state, DashboardLoaded):
            self._emit(self._state.model_copy(update={"is_listening_to_updates": False}))

    async def _follow(self, field: str, stream: AsyncIterator[List[Job]], partner_id: str) -> None:
        """Patch one job list of the loaded dashboard from a live subscription"""
        try:
            async with aclosing(stream) as updates:
                async for jobs in updates:
                    if isinstance(self._state, DashboardLoaded):
                        self._emit(self._state.model_copy(update={field: jobs, "is_listening_to_updates": True}))
        except Failure as e:
            logger.error(f"Live {field} subscription for partner {partner_id} failed: {e}")
            if not self._closed:
                self.add(RetryOperation(partner_id=partner_id))

    async def _cancel_subscriptions(self) -> None:
        tasks = list(self._subscriptions.values())
        self._subscriptions = {}
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Job actions
    # ------------------------------------------------------------------

    async def _run_job_action(
        self,
        job_id: str,
        partner_id: str,
        operation: str,
        success_message: str,
        call: Callable[[], Awaitable[Job]]
    ) -> None:
        self._emit(JobOperationInProgress(job_id=job_id, operation=operation))
        try:
            job = await call()
        except Failure as e:
            self._emit(JobOperationError(job_id=job_id, operation=operation, message=e.message))
            return

        self._emit(JobOperationSuccess(job_id=job_id, operation=operation, updated_job=job, message=success_message))
        self.add(RefreshPartnerDashboard(partner_id=partner_id))

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def _patch_availability(self, availability: PartnerAvailability) -> None:
        loaded = self._loaded_snapshot()
        if loaded is not None:
            self._emit(loaded.model_copy(update={"availability": availability}))

    async def _run_availability_update(
        self,
        operation: str,
        success_message: str,
        call: Callable[[], Awaitable[PartnerAvailability]]
    ) -> None:
        self._emit(AvailabilityUpdateInProgress(operation=operation))
        try:
            availability = await call()
        except Failure as e:
            self._emit(AvailabilityUpdateError(message=e.message))
            return

        self._emit(AvailabilityUpdateSuccess(updated_availability=availability, message=success_message))
        self._patch_availability(availability)

    async def _on_update_online_status(self, event: UpdateOnlineStatus) -> None:
        try:
            availability = await self.service.update_online_status(event.partner_id, event.is_online)
        except Failure as e:
            self._emit(AvailabilityUpdateError(message=e.message))
            return
        self._patch_availability(availability)

    # ------------------------------------------------------------------
    # Earnings, statistics and notifications
    # ------------------------------------------------------------------

    async def _on_load_earnings(self, event: LoadEarnings) -> None:
        self._emit(EarningsLoading())
        try:
            earnings = await self.service.get_partner_earnings(event.partner_id)
        except Failure as e:
            self._emit(EarningsError(message=e.message))
            return
        self._emit(EarningsLoaded(earnings=earnings))

    async def _on_load_earnings_by_date_range(self, event: LoadEarningsByDateRange) -> None:
        self._emit(EarningsLoading())
        earnings, daily = await asyncio.gather(
            self.service.get_partner_earnings(event.partner_id),
            self.service.get_earnings_by_date_range(event.partner_id, event.start_date, event.end_date),
            return_exceptions=True
        )
        if isinstance(earnings, BaseException) or isinstance(daily, BaseException):
            self._emit(EarningsError(message="Failed to load earnings data"))
            return
        self._emit(EarningsLoaded(earnings=earnings, daily_earnings=daily))

    async def _on_load_job_statistics(self, event: LoadJobStatistics) -> None:
        self._emit(StatisticsLoading())
        try:
            statistics = await self.service.get_job_statistics(event.partner_id, event.start_date, event.end_date)
        except Failure as e:
            self._emit(StatisticsError(message=e.message))
            return
        self._emit(StatisticsLoaded(statistics=statistics))

    async def _on_load_performance_metrics(self, event: LoadPerformanceMetrics) -> None:
        self._emit(StatisticsLoading())
        statistics, metrics = await asyncio.gather(
            self.service.get_job_statistics(event.partner_id),
            self.service.get_performance_metrics(event.partner_id),
            return_exceptions=True
        )
        if isinstance(statistics, BaseException) or isinstance(metrics, BaseException):
            self._emit(StatisticsError(message="Failed to load performance data"))
            return
        self._emit(StatisticsLoaded(statistics=statistics, performance_metrics=metrics))

    async def _on_mark_notification_read(self, event: MarkJobNotificationAsRead) -> None:
        try:
            await self.service.mark_job_notification_as_read(event.partner_id, event.job_id)
        except Failure as e:
            # Notification bookkeeping never interrupts the dashboard
            logger.warning(f"Could not mark notification for job {event.job_id} as read: {e}")
            return
        self.add(LoadUnreadNotificationsCount(partner_id=event.partner_id))

    async def _on_load_unread_count(self, event: LoadUnreadNotificationsCount) -> None:
        try:
            count = await self.service.get_unread_notifications_count(event.partner_id)
        except Failure as e:
            logger.warning(f"Could not load unread notifications count: {e}")
            return

        if isinstance(self._state, DashboardLoaded):
            self._emit(self._state.model_copy(update={"unread_notifications_count": count}))
        else:
            self._emit(UnreadNotificationsCountUpdated(count=count))
