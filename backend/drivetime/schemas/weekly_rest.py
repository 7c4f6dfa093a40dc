from pydantic import BaseModel, Field
import uuid
from datetime import date as Date, datetime as DateTime
from typing import Literal, Optional

RestType = Literal["full_weekly_rest", "reduced_weekly_rest", "compensated_rest"]


class WeeklyRestCreate(BaseModel):
    week_start_date: Date
    week_end_date: Optional[Date] = None  # Standard: Wochenstart + 6 Tage
    rest_start_time: Optional[DateTime] = None
    rest_end_time: Optional[DateTime] = None
    total_rest_hours: float = Field(default=0, ge=0)
    rest_type: RestType = "full_weekly_rest"
    compensation_required: bool = False
    compensation_date: Optional[Date] = None
    notes: Optional[str] = None


class WeeklyRestUpdate(BaseModel):
    rest_start_time: Optional[DateTime] = None
    rest_end_time: Optional[DateTime] = None
    total_rest_hours: Optional[float] = Field(default=None, ge=0)
    rest_type: Optional[RestType] = None
    compensation_required: Optional[bool] = None
    compensation_date: Optional[Date] = None
    notes: Optional[str] = None


class WeeklyRestOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    driver_id: uuid.UUID
    week_start_date: Date
    week_end_date: Date
    rest_start_time: Optional[DateTime]
    rest_end_time: Optional[DateTime]
    total_rest_hours: float
    rest_type: str
    compensation_required: bool
    compensation_date: Optional[Date]
    notes: Optional[str]
    created_at: DateTime

    model_config = {"from_attributes": True}


class WeeklyRestAnalysisOut(BaseModel):
    week_start: Date
    week_end: Date
    total_work_hours: float
    required_weekly_rest: float
    actual_rest_hours: float
    measured_rest_hours: float
    rest_compliance: bool
    rest_type: Literal["full", "reduced", "missing"]
    compensation_required: bool
    compensation_date: Optional[Date]
    warnings: list[str]
    violations: list[str]

    model_config = {"from_attributes": True}


class AutoRecordOut(BaseModel):
    created: bool
    message: str
    analysis: WeeklyRestAnalysisOut
    record: Optional[WeeklyRestOut] = None
