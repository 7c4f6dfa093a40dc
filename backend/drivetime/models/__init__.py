from drivetime.models.organization import Organization
from drivetime.models.user import User
from drivetime.models.time_entry import TimeEntry
from drivetime.models.time_off import TimeOffRequest
from drivetime.models.weekly_rest import WeeklyRest

__all__ = [
    "Organization",
    "User",
    "TimeEntry",
    "TimeOffRequest",
    "WeeklyRest",
]
