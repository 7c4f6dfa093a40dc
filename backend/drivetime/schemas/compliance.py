"""
Schemas für Compliance-Endpunkte (WTD-Analyse).
"""
import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel


class WTDLimitsOut(BaseModel):
    max_daily_working_minutes: int
    max_weekly_working_minutes: int
    max_daily_driving_minutes: int
    max_weekly_driving_minutes: int
    break_after_6h_minutes: int
    break_after_9h_minutes: int
    driving_break_after_4_5h_minutes: int
    min_daily_rest_hours: float
    reduced_daily_rest_hours: float
    max_reduced_daily_rests_per_week: int
    min_weekly_rest_hours: float
    reduced_weekly_rest_hours: float
    max_consecutive_working_days: int
    week_start: int

    model_config = {"from_attributes": True}


class WTDAnalysisOut(BaseModel):
    reference_date: date
    week_start: date
    week_end: date

    daily_working_minutes: float
    daily_driving_minutes: float
    daily_break_minutes: float
    required_break_minutes: int
    daily_rest_hours: Optional[float]
    daily_limit_ok: bool
    daily_compliance: bool

    weekly_working_minutes: float
    weekly_driving_minutes: float
    weekly_rest_hours: Optional[float]
    reduced_daily_rests: int
    daily_minutes_by_date: dict[date, float]
    weekly_limit_ok: bool
    weekly_compliance: bool

    break_compliance: bool
    rest_compliance: bool
    consecutive_working_days: int
    consecutive_days_compliance: bool

    rules: dict[str, bool]
    overall_compliance: bool
    compliance_score: int
    critical_violations: list[str]
    warnings: list[str]

    model_config = {"from_attributes": True}


class WTDComplianceOut(BaseModel):
    driver_id: uuid.UUID
    analysis: WTDAnalysisOut
    limits: WTDLimitsOut


class DriverComplianceSummary(BaseModel):
    driver_id: uuid.UUID
    driver_name: str            # "Vorname Nachname" oder E-Mail
    overall_compliance: bool
    compliance_score: int
    daily_working_minutes: float
    weekly_working_minutes: float
    critical_violations: list[str]
