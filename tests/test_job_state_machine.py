"""
Tests for job status guards and transitions
"""

from datetime import datetime, timezone

import pytest

from carenow.core.exceptions import InvalidJobTransitionError, ValidationFailure
from carenow.schemas.job import Job, JobStatus
from carenow.services.job_state_machine import JobAction, BOOKING_STATUS_FOR, can_apply, transition

NOW = datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc)


def make_job(status: JobStatus) -> Job:
    return Job(
        id="booking-1",
        booking_id="booking-1",
        partner_id="partner-1",
        scheduled_date=NOW,
        created_at=NOW,
        status=status,
    )


class TestGuards:
    def test_pending_job_can_only_be_accepted_or_rejected(self):
        job = make_job(JobStatus.PENDING)
        assert job.can_be_accepted
        assert job.can_be_rejected
        assert not job.can_be_started
        assert not job.can_be_completed
        assert job.can_be_cancelled

    def test_accepted_job_can_be_started(self):
        job = make_job(JobStatus.ACCEPTED)
        assert job.can_be_started
        assert not job.can_be_accepted
        assert job.is_active

    def test_terminal_jobs_cannot_be_cancelled(self):
        for status in (JobStatus.REJECTED, JobStatus.COMPLETED, JobStatus.CANCELLED):
            assert not make_job(status).can_be_cancelled

    def test_guards_agree_with_transition_table(self):
        for status in JobStatus:
            job = make_job(status)
            assert can_apply(status, JobAction.ACCEPT) == job.can_be_accepted
            assert can_apply(status, JobAction.REJECT) == job.can_be_rejected
            assert can_apply(status, JobAction.START) == job.can_be_started
            assert can_apply(status, JobAction.COMPLETE) == job.can_be_completed
            assert can_apply(status, JobAction.CANCEL) == job.can_be_cancelled


class TestTransition:
    def test_accept_sets_status_and_timestamp(self):
        changes = transition(make_job(JobStatus.PENDING), JobAction.ACCEPT, NOW)
        assert changes == {"status": JobStatus.ACCEPTED, "acceptedAt": NOW, "updatedAt": NOW}

    def test_reject_records_reason(self):
        changes = transition(make_job(JobStatus.PENDING), JobAction.REJECT, NOW, "Too far away")
        assert changes["status"] == JobStatus.REJECTED
        assert changes["rejectedAt"] == NOW
        assert changes["rejectionReason"] == "Too far away"

    def test_cancel_uses_rejection_reason_field(self):
        changes = transition(make_job(JobStatus.IN_PROGRESS), JobAction.CANCEL, NOW, "Client left")
        assert changes["status"] == JobStatus.CANCELLED
        assert changes["cancelledAt"] == NOW
        assert changes["rejectionReason"] == "Client left"

    def test_start_and_complete(self):
        assert transition(make_job(JobStatus.ACCEPTED), JobAction.START, NOW)["startedAt"] == NOW
        assert transition(make_job(JobStatus.IN_PROGRESS), JobAction.COMPLETE, NOW)["completedAt"] == NOW

    @pytest.mark.parametrize("status,action", [
        (JobStatus.ACCEPTED, JobAction.ACCEPT),
        (JobStatus.PENDING, JobAction.START),
        (JobStatus.PENDING, JobAction.COMPLETE),
        (JobStatus.COMPLETED, JobAction.COMPLETE),
        (JobStatus.COMPLETED, JobAction.CANCEL),
        (JobStatus.REJECTED, JobAction.ACCEPT),
    ])
    def test_illegal_transitions_raise(self, status, action):
        with pytest.raises(InvalidJobTransitionError) as exc_info:
            transition(make_job(status), action, NOW)
        error = exc_info.value
        assert isinstance(error, ValidationFailure)
        assert error.job_id == "booking-1"
        assert error.current == status.value
        assert error.action == action.value

    def test_booking_mirror_values(self):
        assert BOOKING_STATUS_FOR == {
            JobAction.ACCEPT: "confirmed",
            JobAction.REJECT: "rejected",
            JobAction.START: "inProgress",
            JobAction.COMPLETE: "completed",
            JobAction.CANCEL: "cancelled",
        }


class TestStatusParsing:
    @pytest.mark.parametrize("raw,expected", [
        ("pending", JobStatus.PENDING),
        ("confirmed", JobStatus.ACCEPTED),
        ("in_progress", JobStatus.IN_PROGRESS),
        ("inprogress", JobStatus.IN_PROGRESS),
        ("inProgress", JobStatus.IN_PROGRESS),
        ("COMPLETED", JobStatus.COMPLETED),
    ])
    def test_from_string(self, raw, expected):
        assert JobStatus.from_string(raw) == expected

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            JobStatus.from_string("archived")

    def test_job_document_round_trip_keeps_camel_case(self):
        job = make_job(JobStatus.IN_PROGRESS)
        document = job.to_document()
        assert document["status"] == "inProgress"
        assert document["partnerId"] == "partner-1"
        assert document["scheduledDate"] == "2026-03-10T03:00:00.000000Z"
        assert "id" not in document
        assert Job.from_document("booking-1", document) == job
