"""
Partner availability schemas
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from carenow.db.document_store import encode_value

WEEK_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class PartnerAvailability(BaseModel):
    """Current and scheduled capacity of a partner to receive jobs"""
    partner_id: str = Field(..., alias="partnerId")
    is_available: bool = Field(True, alias="isAvailable", description="Partner accepts new jobs")
    is_online: bool = Field(False, alias="isOnline")
    last_seen: Optional[datetime] = Field(None, alias="lastSeen", description="Stamped on every online-status change")
    unavailability_reason: Optional[str] = Field(None, alias="unavailabilityReason")
    unavailable_until: Optional[datetime] = Field(None, alias="unavailableUntil")
    working_hours: Dict[str, List[str]] = Field(default_factory=dict, alias="workingHours", description="Day name to ordered 'HH:MM-HH:MM' slots")
    blocked_dates: List[str] = Field(default_factory=list, alias="blockedDates", description="ISO dates the partner does not work")
    last_updated: datetime = Field(..., alias="lastUpdated")

    class Config:
        populate_by_name = True

    @classmethod
    def default_for(cls, partner_id: str, now: datetime, slots: List[str]) -> "PartnerAvailability":
        """Available all week in the given slots, offline"""
        return cls(
            partner_id=partner_id,
            is_available=True,
            is_online=False,
            working_hours={day: list(slots) for day in WEEK_DAYS},
            blocked_dates=[],
            last_updated=now
        )

    def has_expired_unavailability(self, now: datetime) -> bool:
        return self.unavailable_until is not None and _aware(self.unavailable_until) <= _aware(now)

    def is_currently_available(self, now: datetime) -> bool:
        """Available flag set and no temporary unavailability still running"""
        if not self.is_available:
            # An expired window no longer blocks the partner
            return self.has_expired_unavailability(now)
        if self.unavailable_until is not None and _aware(now) < _aware(self.unavailable_until):
            return False
        return True

    def to_document(self) -> Dict[str, Any]:
        return encode_value(self.model_dump(by_alias=True))

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "PartnerAvailability":
        return cls.model_validate({"partnerId": doc_id, **data})


class AvailabilityStatusRequest(BaseModel):
    is_available: bool = Field(..., alias="isAvailable")
    reason: Optional[str] = Field(None, description="Why the partner is unavailable")

    class Config:
        populate_by_name = True


class OnlineStatusRequest(BaseModel):
    is_online: bool = Field(..., alias="isOnline")

    class Config:
        populate_by_name = True


class WorkingHoursRequest(BaseModel):
    working_hours: Dict[str, List[str]] = Field(..., alias="workingHours", description="Day name to 'HH:MM-HH:MM' slots")

    class Config:
        populate_by_name = True


class BlockedDatesRequest(BaseModel):
    dates: List[str] = Field(..., description="ISO dates (YYYY-MM-DD)")


class TemporaryUnavailabilityRequest(BaseModel):
    unavailable_until: datetime = Field(..., alias="unavailableUntil")
    reason: str = Field(..., description="Shown to dispatchers while the window runs")

    class Config:
        populate_by_name = True
