from drivetime.schemas.time_entry import (
    ClockRequest, TimeEntryCreate, TimeEntryUpdate, TimeEntryOut, TimeStatsOut,
)
from drivetime.schemas.time_off import TimeOffRequestCreate, TimeOffReview, TimeOffRequestOut
from drivetime.schemas.weekly_rest import (
    WeeklyRestCreate, WeeklyRestUpdate, WeeklyRestOut, WeeklyRestAnalysisOut, AutoRecordOut,
)
from drivetime.schemas.compliance import (
    WTDLimitsOut, WTDAnalysisOut, WTDComplianceOut, DriverComplianceSummary,
)

__all__ = [
    "ClockRequest", "TimeEntryCreate", "TimeEntryUpdate", "TimeEntryOut", "TimeStatsOut",
    "TimeOffRequestCreate", "TimeOffReview", "TimeOffRequestOut",
    "WeeklyRestCreate", "WeeklyRestUpdate", "WeeklyRestOut", "WeeklyRestAnalysisOut", "AutoRecordOut",
    "WTDLimitsOut", "WTDAnalysisOut", "WTDComplianceOut", "DriverComplianceSummary",
]
