"""
Partner dashboard events and states

Both are closed unions of pydantic models discriminated by `kind`, so
WebSocket clients can send events as JSON and consumers can match on
every state exhaustively.
"""

from datetime import datetime
from typing import Optional, List, Dict, Literal, Union, Annotated
from pydantic import BaseModel, Field, TypeAdapter

from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.earnings import PartnerEarnings, DailyEarning, JobStatistics, PerformanceMetrics
from carenow.schemas.job import Job


class _Message(BaseModel):
    class Config:
        populate_by_name = True
        frozen = True


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------

class LoadPartnerDashboard(_Message):
    kind: Literal["load_dashboard"] = "load_dashboard"
    partner_id: str = Field(..., alias="partnerId")


class RefreshPartnerDashboard(_Message):
    kind: Literal["refresh_dashboard"] = "refresh_dashboard"
    partner_id: str = Field(..., alias="partnerId")


class StartListeningToUpdates(_Message):
    kind: Literal["start_listening"] = "start_listening"
    partner_id: str = Field(..., alias="partnerId")


class StopListeningToUpdates(_Message):
    kind: Literal["stop_listening"] = "stop_listening"


class AcceptJob(_Message):
    kind: Literal["accept_job"] = "accept_job"
    job_id: str = Field(..., alias="jobId")
    partner_id: str = Field(..., alias="partnerId")


class RejectJob(_Message):
    kind: Literal["reject_job"] = "reject_job"
    job_id: str = Field(..., alias="jobId")
    partner_id: str = Field(..., alias="partnerId")
    rejection_reason: str = Field(..., alias="rejectionReason")


class StartJob(_Message):
    kind: Literal["start_job"] = "start_job"
    job_id: str = Field(..., alias="jobId")
    partner_id: str = Field(..., alias="partnerId")


class CompleteJob(_Message):
    kind: Literal["complete_job"] = "complete_job"
    job_id: str = Field(..., alias="jobId")
    partner_id: str = Field(..., alias="partnerId")


class CancelJob(_Message):
    kind: Literal["cancel_job"] = "cancel_job"
    job_id: str = Field(..., alias="jobId")
    partner_id: str = Field(..., alias="partnerId")
    cancellation_reason: str = Field(..., alias="cancellationReason")


class ToggleAvailability(_Message):
    kind: Literal["toggle_availability"] = "toggle_availability"
    partner_id: str = Field(..., alias="partnerId")
    is_available: bool = Field(..., alias="isAvailable")
    reason: Optional[str] = None


class UpdateOnlineStatus(_Message):
    kind: Literal["update_online_status"] = "update_online_status"
    partner_id: str = Field(..., alias="partnerId")
    is_online: bool = Field(..., alias="isOnline")


class UpdateWorkingHours(_Message):
    kind: Literal["update_working_hours"] = "update_working_hours"
    partner_id: str = Field(..., alias="partnerId")
    working_hours: Dict[str, List[str]] = Field(..., alias="workingHours")


class SetTemporaryUnavailability(_Message):
    kind: Literal["set_temporary_unavailability"] = "set_temporary_unavailability"
    partner_id: str = Field(..., alias="partnerId")
    unavailable_until: datetime = Field(..., alias="unavailableUntil")
    reason: str


class ClearTemporaryUnavailability(_Message):
    kind: Literal["clear_temporary_unavailability"] = "clear_temporary_unavailability"
    partner_id: str = Field(..., alias="partnerId")


class LoadEarnings(_Message):
    kind: Literal["load_earnings"] = "load_earnings"
    partner_id: str = Field(..., alias="partnerId")


class LoadEarningsByDateRange(_Message):
    kind: Literal["load_earnings_by_date_range"] = "load_earnings_by_date_range"
    partner_id: str = Field(..., alias="partnerId")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")


class LoadJobStatistics(_Message):
    kind: Literal["load_job_statistics"] = "load_job_statistics"
    partner_id: str = Field(..., alias="partnerId")
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")


class LoadPerformanceMetrics(_Message):
    kind: Literal["load_performance_metrics"] = "load_performance_metrics"
    partner_id: str = Field(..., alias="partnerId")


class MarkJobNotificationAsRead(_Message):
    kind: Literal["mark_notification_read"] = "mark_notification_read"
    partner_id: str = Field(..., alias="partnerId")
    job_id: str = Field(..., alias="jobId")


class LoadUnreadNotificationsCount(_Message):
    kind: Literal["load_unread_notifications_count"] = "load_unread_notifications_count"
    partner_id: str = Field(..., alias="partnerId")


class ClearError(_Message):
    kind: Literal["clear_error"] = "clear_error"


class RetryOperation(_Message):
    kind: Literal["retry"] = "retry"
    partner_id: str = Field("", alias="partnerId")


DashboardEvent = Annotated[
    Union[
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
    ],
    Field(discriminator="kind"),
]

dashboard_event_adapter = TypeAdapter(DashboardEvent)


# ----------------------------------------------------------------------
# States
# ----------------------------------------------------------------------

class DashboardInitial(_Message):
    kind: Literal["initial"] = "initial"


class DashboardLoading(_Message):
    kind: Literal["loading"] = "loading"


class DashboardLoaded(_Message):
    """Everything the partner dashboard shows"""
    kind: Literal["loaded"] = "loaded"
    pending_jobs: List[Job] = Field(default_factory=list, alias="pendingJobs")
    accepted_jobs: List[Job] = Field(default_factory=list, alias="acceptedJobs")
    active_jobs: List[Job] = Field(default_factory=list, alias="activeJobs")
    earnings: PartnerEarnings
    availability: PartnerAvailability
    statistics: Optional[JobStatistics] = None
    performance_metrics: Optional[PerformanceMetrics] = Field(None, alias="performanceMetrics")
    unread_notifications_count: int = Field(0, alias="unreadNotificationsCount")
    is_listening_to_updates: bool = Field(False, alias="isListeningToUpdates")


class DashboardError(_Message):
    kind: Literal["error"] = "error"
    message: str
    error_code: Optional[str] = Field(None, alias="errorCode")


class DashboardRefreshing(_Message):
    kind: Literal["refreshing"] = "refreshing"
    current: DashboardLoaded


class JobOperationInProgress(_Message):
    kind: Literal["job_operation_in_progress"] = "job_operation_in_progress"
    job_id: str = Field(..., alias="jobId")
    operation: str = Field(..., description="accepting, rejecting, starting, completing or cancelling")


class JobOperationSuccess(_Message):
    kind: Literal["job_operation_success"] = "job_operation_success"
    job_id: str = Field(..., alias="jobId")
    operation: str
    updated_job: Job = Field(..., alias="updatedJob")
    message: str


class JobOperationError(_Message):
    kind: Literal["job_operation_error"] = "job_operation_error"
    job_id: str = Field(..., alias="jobId")
    operation: str
    message: str


class AvailabilityUpdateInProgress(_Message):
    kind: Literal["availability_update_in_progress"] = "availability_update_in_progress"
    operation: str = Field(..., description="toggling, updating_hours, setting_unavailable or clearing_unavailable")


class AvailabilityUpdateSuccess(_Message):
    kind: Literal["availability_update_success"] = "availability_update_success"
    updated_availability: PartnerAvailability = Field(..., alias="updatedAvailability")
    message: str


class AvailabilityUpdateError(_Message):
    kind: Literal["availability_update_error"] = "availability_update_error"
    message: str


class EarningsLoading(_Message):
    kind: Literal["earnings_loading"] = "earnings_loading"


class EarningsLoaded(_Message):
    kind: Literal["earnings_loaded"] = "earnings_loaded"
    earnings: PartnerEarnings
    daily_earnings: Optional[List[DailyEarning]] = Field(None, alias="dailyEarnings")


class EarningsError(_Message):
    kind: Literal["earnings_error"] = "earnings_error"
    message: str


class StatisticsLoading(_Message):
    kind: Literal["statistics_loading"] = "statistics_loading"


class StatisticsLoaded(_Message):
    kind: Literal["statistics_loaded"] = "statistics_loaded"
    statistics: JobStatistics
    performance_metrics: Optional[PerformanceMetrics] = Field(None, alias="performanceMetrics")


class StatisticsError(_Message):
    kind: Literal["statistics_error"] = "statistics_error"
    message: str


class UnreadNotificationsCountUpdated(_Message):
    kind: Literal["unread_notifications_count_updated"] = "unread_notifications_count_updated"
    count: int


DashboardState = Union[
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
]
