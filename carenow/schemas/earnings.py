"""
Partner earnings and statistics schemas
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, Any
from pydantic import BaseModel, Field

from carenow.core.exceptions import UnsupportedEarningsWindowError
from carenow.db.document_store import encode_value


class EarningsWindow(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    TOTAL = "total"


class WindowTotals(BaseModel):
    window: EarningsWindow
    earnings: float
    jobs: int


class PartnerEarnings(BaseModel):
    """
    Rolling earnings counters of one partner.

    Only the today and total counters are maintained on job completion.
    Week and month counters are stored for compatibility but never
    updated, so reading them through window_totals is refused.
    """
    partner_id: str = Field(..., alias="partnerId")
    total_earnings: float = Field(0.0, alias="totalEarnings")
    today_earnings: float = Field(0.0, alias="todayEarnings")
    week_earnings: float = Field(0.0, alias="weekEarnings")
    month_earnings: float = Field(0.0, alias="monthEarnings")
    total_jobs: int = Field(0, alias="totalJobs")
    today_jobs: int = Field(0, alias="todayJobs")
    week_jobs: int = Field(0, alias="weekJobs")
    month_jobs: int = Field(0, alias="monthJobs")
    average_rating: float = Field(0.0, alias="averageRating")
    total_reviews: int = Field(0, alias="totalReviews")
    platform_fee_rate: float = Field(0.15, alias="platformFeeRate", description="Share of the price kept by the platform")
    last_updated: datetime = Field(..., alias="lastUpdated")
    version: int = Field(0, description="Store version the counters were read at")

    class Config:
        populate_by_name = True

    @classmethod
    def default_for(cls, partner_id: str, now: datetime, platform_fee_rate: float = 0.15) -> "PartnerEarnings":
        return cls(partner_id=partner_id, platform_fee_rate=platform_fee_rate, last_updated=now)

    @property
    def average_earnings_per_job(self) -> float:
        if self.total_jobs == 0:
            return 0.0
        return self.total_earnings / self.total_jobs

    def window_totals(self, window: EarningsWindow) -> WindowTotals:
        """
        Earnings and job count for a window.

        Raises:
            UnsupportedEarningsWindowError: For week and month windows
        """
        window = EarningsWindow(window)
        if window == EarningsWindow.TODAY:
            return WindowTotals(window=window, earnings=self.today_earnings, jobs=self.today_jobs)
        if window == EarningsWindow.TOTAL:
            return WindowTotals(window=window, earnings=self.total_earnings, jobs=self.total_jobs)
        raise UnsupportedEarningsWindowError(window.value)

    def to_document(self) -> Dict[str, Any]:
        return encode_value(self.model_dump(by_alias=True, exclude={"version"}))

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any], version: int = 0) -> "PartnerEarnings":
        return cls.model_validate({"partnerId": doc_id, **data, "version": version})


class DailyEarning(BaseModel):
    """Completed-job earnings of one calendar day"""
    day: date = Field(..., alias="date")
    earnings: float = 0.0
    jobs_completed: int = Field(0, alias="jobsCompleted")
    hours_worked: float = Field(0.0, alias="hoursWorked")

    class Config:
        populate_by_name = True


class JobStatistics(BaseModel):
    """Counts and rates over a partner's jobs"""
    total_jobs: int = Field(0, alias="totalJobs")
    pending_jobs: int = Field(0, alias="pendingJobs")
    accepted_jobs: int = Field(0, alias="acceptedJobs")
    in_progress_jobs: int = Field(0, alias="inProgressJobs")
    completed_jobs: int = Field(0, alias="completedJobs")
    rejected_jobs: int = Field(0, alias="rejectedJobs")
    cancelled_jobs: int = Field(0, alias="cancelledJobs")
    total_earnings: float = Field(0.0, alias="totalEarnings", description="Sum of partner earnings over completed jobs")
    total_hours: float = Field(0.0, alias="totalHours")
    acceptance_rate: float = Field(0.0, alias="acceptanceRate", description="Percentage of jobs not rejected")
    completion_rate: float = Field(0.0, alias="completionRate", description="Completed among accepted and completed, in percent")

    class Config:
        populate_by_name = True


class PerformanceMetrics(BaseModel):
    total_earnings: float = Field(0.0, alias="totalEarnings")
    average_rating: float = Field(0.0, alias="averageRating")
    total_reviews: int = Field(0, alias="totalReviews")
    total_jobs: int = Field(0, alias="totalJobs")
    acceptance_rate: float = Field(0.0, alias="acceptanceRate")
    completion_rate: float = Field(0.0, alias="completionRate")
    average_earnings_per_job: float = Field(0.0, alias="averageEarningsPerJob")
    weekly_growth: float = Field(0.0, alias="weeklyGrowth", description="Last seven days against the seven before, in percent")

    class Config:
        populate_by_name = True
