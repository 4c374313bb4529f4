"""
Job status state machine

pending -> accepted | rejected
accepted -> inProgress -> completed
pending | accepted | inProgress -> cancelled

Every mutating job operation goes through transition(), which rejects
illegal moves with InvalidJobTransitionError.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from carenow.core.exceptions import InvalidJobTransitionError
from carenow.schemas.job import Job, JobStatus


class JobAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


# action -> (statuses it may be applied from, resulting status)
ALLOWED_TRANSITIONS = {
    JobAction.ACCEPT: ({JobStatus.PENDING}, JobStatus.ACCEPTED),
    JobAction.REJECT: ({JobStatus.PENDING}, JobStatus.REJECTED),
    JobAction.START: ({JobStatus.ACCEPTED}, JobStatus.IN_PROGRESS),
    JobAction.COMPLETE: ({JobStatus.IN_PROGRESS}, JobStatus.COMPLETED),
    JobAction.CANCEL: ({JobStatus.PENDING, JobStatus.ACCEPTED, JobStatus.IN_PROGRESS}, JobStatus.CANCELLED),
}

# Booking status written alongside each job transition
BOOKING_STATUS_FOR = {
    JobAction.ACCEPT: "confirmed",
    JobAction.REJECT: "rejected",
    JobAction.START: "inProgress",
    JobAction.COMPLETE: "completed",
    JobAction.CANCEL: "cancelled",
}

_TIMESTAMP_FIELD = {
    JobAction.ACCEPT: "acceptedAt",
    JobAction.REJECT: "rejectedAt",
    JobAction.START: "startedAt",
    JobAction.COMPLETE: "completedAt",
    JobAction.CANCEL: "cancelledAt",
}


def can_apply(status: JobStatus, action: JobAction) -> bool:
    sources, _ = ALLOWED_TRANSITIONS[action]
    return status in sources


def transition(job: Job, action: JobAction, now: datetime, reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Compute the field changes for applying an action to a job.

    Args:
        job: Job as currently stored
        action: Action requested by the partner
        now: Timestamp for the matching *At field and updatedAt
        reason: Rejection or cancellation reason

    Returns:
        Document fields to write (status, timestamp, updatedAt, rejectionReason)

    Raises:
        InvalidJobTransitionError: If the action is not allowed from the job's status
    """
    action = JobAction(action)
    sources, target = ALLOWED_TRANSITIONS[action]
    if job.status not in sources:
        raise InvalidJobTransitionError(job.id, job.status.value, action.value)

    changes: Dict[str, Any] = {
        "status": target,
        _TIMESTAMP_FIELD[action]: now,
        "updatedAt": now,
    }
    if action in (JobAction.REJECT, JobAction.CANCEL):
        changes["rejectionReason"] = reason
    return changes
