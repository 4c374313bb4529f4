"""
Tests for the partner dashboard orchestrator
"""

import asyncio
from datetime import timedelta

import pytest

from conftest import NOW, PARTNER_ID
from carenow.schemas.dashboard import (
    AcceptJob,
    AvailabilityUpdateInProgress,
    AvailabilityUpdateSuccess,
    ClearError,
    ClearTemporaryUnavailability,
    CompleteJob,
    DashboardError,
    DashboardInitial,
    DashboardLoaded,
    DashboardLoading,
    DashboardRefreshing,
    EarningsLoaded,
    EarningsLoading,
    JobOperationError,
    JobOperationInProgress,
    JobOperationSuccess,
    LoadEarningsByDateRange,
    LoadPartnerDashboard,
    LoadPerformanceMetrics,
    LoadUnreadNotificationsCount,
    MarkJobNotificationAsRead,
    RejectJob,
    RetryOperation,
    SetTemporaryUnavailability,
    StartListeningToUpdates,
    StatisticsLoaded,
    StopListeningToUpdates,
    ToggleAvailability,
    UnreadNotificationsCountUpdated,
    UpdateOnlineStatus,
    dashboard_event_adapter,
)
from carenow.schemas.job import JobStatus
from carenow.services.dashboard_bloc import describe_state, state_payload


@pytest.fixture
async def bloc(container):
    bloc = container.dashboard_bloc(PARTNER_ID)
    yield bloc
    await bloc.close()


def drain_states(queue):
    states = []
    while not queue.empty():
        states.append(queue.get_nowait())
    return states


async def wait_for_state(bloc, predicate, timeout=5.0):
    async def poll():
        while not predicate(bloc.state):
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


async def load(bloc):
    bloc.add(LoadPartnerDashboard(partner_id=PARTNER_ID))
    await bloc.drain()
    assert isinstance(bloc.state, DashboardLoaded)
    return bloc.state


class TestLoad:
    async def test_initial_state(self, bloc):
        assert isinstance(bloc.state, DashboardInitial)

    async def test_load_emits_loading_then_loaded(self, bloc, service, make_job):
        await make_job("booking-1")
        await make_job("booking-2", scheduled_date=NOW + timedelta(days=1))
        await make_job("booking-3", scheduled_date=NOW + timedelta(days=2))
        await service.accept_job(PARTNER_ID, "booking-2")
        await service.accept_job(PARTNER_ID, "booking-3")
        await service.start_job(PARTNER_ID, "booking-3")
        states = bloc.subscribe()

        loaded = await load(bloc)

        emitted = drain_states(states)
        assert [type(state) for state in emitted] == [DashboardLoading, DashboardLoaded]
        assert [job.id for job in loaded.pending_jobs] == ["booking-1"]
        assert [job.id for job in loaded.accepted_jobs] == ["booking-2", "booking-3"]
        assert [job.id for job in loaded.active_jobs] == ["booking-2", "booking-3"]
        assert loaded.unread_notifications_count == 3
        assert loaded.earnings.total_earnings == 0.0
        assert loaded.availability.is_available
        assert not loaded.is_listening_to_updates

    async def test_any_failed_read_fails_the_whole_load(self, container):
        bloc = container.dashboard_bloc()
        try:
            bloc.add(LoadPartnerDashboard(partner_id=""))
            await bloc.drain()
            assert isinstance(bloc.state, DashboardError)
            assert bloc.state.message == "Failed to load dashboard data"
        finally:
            await bloc.close()

    async def test_clear_error_and_retry(self, container):
        bloc = container.dashboard_bloc()
        try:
            bloc.add(LoadPartnerDashboard(partner_id=""))
            await bloc.drain()
            bloc.add(ClearError())
            await bloc.drain()
            assert isinstance(bloc.state, DashboardInitial)

            bloc.add(RetryOperation(partner_id=PARTNER_ID))
            await bloc.drain()
            assert isinstance(bloc.state, DashboardLoaded)
        finally:
            await bloc.close()

    async def test_clear_error_ignored_when_not_in_error(self, bloc):
        await load(bloc)
        bloc.add(ClearError())
        await bloc.drain()
        assert isinstance(bloc.state, DashboardLoaded)


class TestJobActions:
    async def test_accept_then_refresh(self, bloc, make_job):
        await make_job("booking-1")
        await load(bloc)
        states = bloc.subscribe()

        bloc.add(AcceptJob(job_id="booking-1", partner_id=PARTNER_ID))
        await bloc.drain()

        emitted = drain_states(states)
        assert [type(state) for state in emitted] == [
            JobOperationInProgress,
            JobOperationSuccess,
            DashboardRefreshing,
            DashboardLoading,
            DashboardLoaded,
        ]
        assert emitted[0].operation == "accepting"
        assert emitted[1].message == "Job accepted successfully"
        assert emitted[1].updated_job.status == JobStatus.ACCEPTED
        assert emitted[2].current.pending_jobs[0].id == "booking-1"

        loaded = bloc.state
        assert loaded.pending_jobs == []
        assert [job.id for job in loaded.accepted_jobs] == ["booking-1"]

    async def test_failed_action_does_not_refresh(self, bloc, make_job):
        await make_job("booking-1")
        await load(bloc)
        states = bloc.subscribe()

        bloc.add(CompleteJob(job_id="booking-1", partner_id=PARTNER_ID))
        await bloc.drain()

        emitted = drain_states(states)
        assert [type(state) for state in emitted] == [JobOperationInProgress, JobOperationError]
        assert emitted[1].operation == "completing"
        assert "Cannot complete job booking-1" in emitted[1].message

    async def test_reject_with_reason(self, bloc, service, make_job):
        await make_job("booking-1")
        bloc.add(RejectJob(job_id="booking-1", partner_id=PARTNER_ID, rejection_reason="Too far"))
        await bloc.drain()

        job = await service.get_job(PARTNER_ID, "booking-1")
        assert job.status == JobStatus.REJECTED
        assert job.rejection_reason == "Too far"
        assert isinstance(bloc.state, DashboardLoaded)


class TestAvailability:
    async def test_toggle_patches_loaded_dashboard(self, bloc):
        await load(bloc)
        states = bloc.subscribe()

        bloc.add(ToggleAvailability(partner_id=PARTNER_ID, is_available=False, reason="Sick"))
        await bloc.drain()

        emitted = drain_states(states)
        assert [type(state) for state in emitted] == [
            AvailabilityUpdateInProgress,
            AvailabilityUpdateSuccess,
            DashboardLoaded,
        ]
        assert emitted[0].operation == "toggling"
        assert emitted[1].message == "You are now unavailable"
        assert not bloc.state.availability.is_available

    async def test_temporary_unavailability_round_trip(self, bloc):
        bloc.add(SetTemporaryUnavailability(
            partner_id=PARTNER_ID,
            unavailable_until=NOW + timedelta(hours=2),
            reason="Appointment",
        ))
        await bloc.drain()
        assert isinstance(bloc.state, AvailabilityUpdateSuccess)
        assert bloc.state.message == "Temporary unavailability set"
        assert bloc.state.updated_availability.unavailability_reason == "Appointment"

        bloc.add(ClearTemporaryUnavailability(partner_id=PARTNER_ID))
        await bloc.drain()
        assert bloc.state.message == "Temporary unavailability cleared"
        assert bloc.state.updated_availability.is_available

    async def test_online_status_patches_dashboard(self, bloc):
        await load(bloc)
        bloc.add(UpdateOnlineStatus(partner_id=PARTNER_ID, is_online=True))
        await bloc.drain()
        assert isinstance(bloc.state, DashboardLoaded)
        assert bloc.state.availability.is_online


class TestEarningsAndStatistics:
    async def test_performance_metrics(self, bloc):
        states = bloc.subscribe()
        bloc.add(LoadPerformanceMetrics(partner_id=PARTNER_ID))
        await bloc.drain()

        emitted = drain_states(states)
        assert isinstance(emitted[-1], StatisticsLoaded)
        assert emitted[-1].performance_metrics is not None

    async def test_earnings_by_date_range(self, bloc):
        states = bloc.subscribe()
        bloc.add(LoadEarningsByDateRange(
            partner_id=PARTNER_ID,
            start_date=NOW - timedelta(days=7),
            end_date=NOW,
        ))
        await bloc.drain()

        emitted = drain_states(states)
        assert isinstance(emitted[0], EarningsLoading)
        assert isinstance(emitted[1], EarningsLoaded)
        assert emitted[1].daily_earnings == []


class TestNotifications:
    async def test_mark_read_updates_loaded_count(self, bloc, make_job):
        await make_job("booking-1")
        await make_job("booking-2")
        loaded = await load(bloc)
        assert loaded.unread_notifications_count == 2

        bloc.add(MarkJobNotificationAsRead(partner_id=PARTNER_ID, job_id="booking-1"))
        await bloc.drain()

        assert isinstance(bloc.state, DashboardLoaded)
        assert bloc.state.unread_notifications_count == 1

    async def test_count_without_dashboard(self, bloc):
        bloc.add(LoadUnreadNotificationsCount(partner_id=PARTNER_ID))
        await bloc.drain()
        assert bloc.state == UnreadNotificationsCountUpdated(count=0)

    async def test_missing_notification_is_ignored(self, bloc):
        await load(bloc)
        bloc.add(MarkJobNotificationAsRead(partner_id=PARTNER_ID, job_id="nope"))
        await bloc.drain()
        assert isinstance(bloc.state, DashboardLoaded)


class TestLiveUpdates:
    async def test_new_job_appears_while_listening(self, bloc, store, service, make_job):
        await load(bloc)
        bloc.add(StartListeningToUpdates(partner_id=PARTNER_ID))
        await bloc.drain()
        assert bloc.is_listening

        await make_job("booking-9")
        await wait_for_state(
            bloc,
            lambda state: isinstance(state, DashboardLoaded)
            and [job.id for job in state.pending_jobs] == ["booking-9"]
        )
        assert bloc.state.is_listening_to_updates

        bloc.add(StopListeningToUpdates())
        await bloc.drain()
        assert not bloc.is_listening
        assert not bloc.state.is_listening_to_updates
        assert store.subscriber_count("partner_jobs") == 0

    async def test_listening_again_replaces_subscriptions(self, bloc, store):
        await load(bloc)
        bloc.add(StartListeningToUpdates(partner_id=PARTNER_ID))
        bloc.add(StartListeningToUpdates(partner_id=PARTNER_ID))
        await bloc.drain()
        await wait_for_state(bloc, lambda state: store.subscriber_count("partner_jobs") == 3)

        await bloc.close()
        assert store.subscriber_count("partner_jobs") == 0


class TestLifecycle:
    async def test_close_ends_streams_and_rejects_events(self, container):
        bloc = container.dashboard_bloc(PARTNER_ID)
        collected = []

        async def consume():
            async for state in bloc.stream():
                collected.append(state)

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        bloc.add(LoadPartnerDashboard(partner_id=PARTNER_ID))
        await bloc.drain()
        await bloc.close()
        await asyncio.wait_for(consumer, timeout=5)

        assert [type(state) for state in collected] == [DashboardLoading, DashboardLoaded]
        with pytest.raises(RuntimeError):
            bloc.add(LoadPartnerDashboard(partner_id=PARTNER_ID))

    def test_events_parse_from_json(self):
        event = dashboard_event_adapter.validate_python(
            {"kind": "reject_job", "jobId": "booking-1", "partnerId": PARTNER_ID, "rejectionReason": "Busy"}
        )
        assert event == RejectJob(job_id="booking-1", partner_id=PARTNER_ID, rejection_reason="Busy")

    def test_describe_and_payload(self):
        state = DashboardError(message="Failed to load dashboard data")
        assert describe_state(state) == "Error: Failed to load dashboard data"

        payload = state_payload(JobOperationInProgress(job_id="booking-1", operation="accepting"))
        assert payload == {
            "kind": "job_operation_in_progress",
            "jobId": "booking-1",
            "operation": "accepting",
            "summary": "Job booking-1: accepting",
        }
