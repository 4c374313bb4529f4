"""
Job-related Pydantic schemas
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator

from carenow.db.document_store import encode_value


class JobStatus(str, Enum):
    """Lifecycle status of a partner job"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> "JobStatus":
        """
        Parse a stored status, accepting the booking-side spellings.

        Raises:
            ValueError: If the value is not a known status
        """
        normalized = value.strip()
        aliases = {
            "confirmed": cls.ACCEPTED,
            "in_progress": cls.IN_PROGRESS,
            "inprogress": cls.IN_PROGRESS,
        }
        if normalized.lower() in aliases:
            return aliases[normalized.lower()]
        for status in cls:
            if status.value.lower() == normalized.lower():
                return status
        raise ValueError(f"Unknown job status: {value}")

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.REJECTED, JobStatus.COMPLETED, JobStatus.CANCELLED)


class JobPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Job(BaseModel):
    """A booking assigned to a partner, keyed by the booking id"""
    id: str = Field(..., description="Job identifier (same as the booking id)")
    booking_id: str = Field(..., alias="bookingId", description="Linked booking identifier")
    partner_id: str = Field(..., alias="partnerId", description="Assigned partner")
    user_id: str = Field("", alias="userId", description="Client user identifier")
    client_name: str = Field("", alias="clientName")
    client_phone: str = Field("", alias="clientPhone")
    service_id: str = Field("", alias="serviceId")
    service_name: str = Field("", alias="serviceName")
    scheduled_date: datetime = Field(..., alias="scheduledDate", description="When the service is scheduled")
    time_slot: str = Field("", alias="timeSlot", description="Booked slot, e.g. '09:00-11:00'")
    hours: float = Field(0.0, description="Booked duration in hours")
    total_price: float = Field(0.0, alias="totalPrice", description="Price paid by the client")
    partner_earnings: float = Field(0.0, alias="partnerEarnings", description="Partner share after the platform fee")
    status: JobStatus = Field(JobStatus.PENDING, description="Current lifecycle status")
    priority: JobPriority = Field(JobPriority.NORMAL, description="Dispatch priority")
    client_address: str = Field("", alias="clientAddress")
    client_latitude: float = Field(0.0, alias="clientLatitude")
    client_longitude: float = Field(0.0, alias="clientLongitude")
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason", description="Reason given on reject or cancel")
    accepted_at: Optional[datetime] = Field(None, alias="acceptedAt")
    rejected_at: Optional[datetime] = Field(None, alias="rejectedAt")
    started_at: Optional[datetime] = Field(None, alias="startedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    cancelled_at: Optional[datetime] = Field(None, alias="cancelledAt")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    is_urgent: bool = Field(False, alias="isUrgent")

    class Config:
        populate_by_name = True

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, JobStatus):
            return JobStatus.from_string(value)
        return value

    @property
    def can_be_accepted(self) -> bool:
        return self.status == JobStatus.PENDING

    @property
    def can_be_rejected(self) -> bool:
        return self.status == JobStatus.PENDING

    @property
    def can_be_started(self) -> bool:
        return self.status == JobStatus.ACCEPTED

    @property
    def can_be_completed(self) -> bool:
        return self.status == JobStatus.IN_PROGRESS

    @property
    def can_be_cancelled(self) -> bool:
        return not self.status.is_terminal

    @property
    def is_active(self) -> bool:
        """Accepted or underway"""
        return self.status in (JobStatus.ACCEPTED, JobStatus.IN_PROGRESS)

    def to_document(self) -> Dict[str, Any]:
        """Stored form of the job (camelCase keys, id is the document key)"""
        return encode_value(self.model_dump(by_alias=True, exclude={"id"}))

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Job":
        return cls.model_validate({**data, "id": doc_id})


class JobReasonRequest(BaseModel):
    """Request body for rejecting or cancelling a job"""
    reason: str = Field(..., description="Why the job is rejected or cancelled")


class AssignBookingRequest(BaseModel):
    """Request body for turning an assigned booking into a partner job"""
    partner_id: Optional[str] = Field(None, alias="partnerId", description="Partner to assign; defaults to the booking's partnerId")

    class Config:
        populate_by_name = True
