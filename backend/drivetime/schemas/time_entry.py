from pydantic import BaseModel, Field, model_validator
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Optional


def validate_entry_times(
    clock_in: Optional[Time],
    clock_out: Optional[Time],
    break_start: Optional[Time],
    break_end: Optional[Time],
    overnight: bool = False,
) -> None:
    """Wirft ValueError bei widersprüchlichen Zeiten (Nachtdienste nur mit overnight=True)."""
    if clock_in and clock_out and clock_out <= clock_in and not overnight:
        raise ValueError("clock_out_time must be after clock_in_time")
    if break_end and not break_start:
        raise ValueError("break_end_time requires break_start_time")
    if break_start and break_end and break_end <= break_start and not overnight:
        raise ValueError("break_end_time must be after break_start_time")


class ClockRequest(BaseModel):
    location: Optional[str] = None


class TimeEntryCreate(BaseModel):
    """Manuelle Erfassung durch Manager/Admin."""
    driver_id: uuid.UUID
    entry_date: Date
    clock_in_time: Time
    clock_out_time: Optional[Time] = None
    break_start_time: Optional[Time] = None
    break_end_time: Optional[Time] = None
    driving_minutes: int = Field(default=0, ge=0)
    overnight: bool = False
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self) -> "TimeEntryCreate":
        validate_entry_times(
            self.clock_in_time, self.clock_out_time,
            self.break_start_time, self.break_end_time, self.overnight,
        )
        return self


class TimeEntryUpdate(BaseModel):
    clock_in_time: Optional[Time] = None
    clock_out_time: Optional[Time] = None
    break_start_time: Optional[Time] = None
    break_end_time: Optional[Time] = None
    driving_minutes: Optional[int] = Field(default=None, ge=0)
    overnight: bool = False
    notes: Optional[str] = None


class TimeEntryOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    driver_id: uuid.UUID
    entry_date: Date
    clock_in_time: Time
    clock_out_time: Optional[Time]
    break_start_time: Optional[Time]
    break_end_time: Optional[Time]
    driving_minutes: int
    location_clock_in: Optional[str]
    location_clock_out: Optional[str]
    notes: Optional[str]
    status: str
    total_hours: Optional[float]
    break_hours: float
    overtime_hours: float
    created_at: DateTime
    updated_at: DateTime

    model_config = {"from_attributes": True}


class TimeStatsOut(BaseModel):
    total_hours: float
    total_overtime: float
    total_breaks: float
    average_hours_per_day: float
    total_days: int
