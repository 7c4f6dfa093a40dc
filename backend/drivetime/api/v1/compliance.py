"""
Compliance API – Working Time Directive (WTD) je Fahrer und Organisation.

Die Analyse wird bei jeder Anfrage aus den aktuellen Zeiteinträgen neu
berechnet und nie gespeichert.
"""
import uuid
from datetime import date, timedelta

from fastapi import APIRouter, Query
from sqlalchemy import select

from drivetime.api.deps import DB, CurrentUser, Limits, ManagerOrAdmin, resolve_driver
from drivetime.models.time_entry import TimeEntry
from drivetime.models.user import User
from drivetime.schemas.compliance import (
    DriverComplianceSummary, WTDAnalysisOut, WTDComplianceOut, WTDLimitsOut,
)
from drivetime.services.wtd_service import analyze_wtd_compliance, week_bounds
from drivetime.utils.local_time import local_now

router = APIRouter(prefix="/compliance", tags=["compliance"])


def _history_window(reference_date: date, limits) -> tuple[date, date]:
    """Einträge, die für Tag, Woche, Ruhezeiten und Folgetage gebraucht werden."""
    week_start, week_end = week_bounds(reference_date, limits.week_start)
    lookback = max(limits.max_consecutive_working_days + 1, 7)
    return min(week_start, reference_date - timedelta(days=lookback)), week_end + timedelta(days=1)


@router.get("/wtd", response_model=WTDComplianceOut)
async def get_wtd_compliance(
    current_user: CurrentUser,
    db: DB,
    limits: Limits,
    day: date | None = Query(None, alias="date"),
    driver_id: uuid.UUID | None = None,
):
    now = local_now()
    reference_date = day or now.date()
    driver = await resolve_driver(current_user, db, driver_id)

    window_start, window_end = _history_window(reference_date, limits)
    result = await db.execute(
        select(TimeEntry).where(
            TimeEntry.driver_id == driver.id,
            TimeEntry.entry_date >= window_start,
            TimeEntry.entry_date <= window_end,
        ).order_by(TimeEntry.entry_date)
    )
    entries = result.scalars().all()

    analysis = analyze_wtd_compliance(entries, reference_date, limits, now=now)
    return WTDComplianceOut(
        driver_id=driver.id,
        analysis=WTDAnalysisOut.model_validate(analysis),
        limits=WTDLimitsOut.model_validate(limits),
    )


@router.get("/overview", response_model=list[DriverComplianceSummary])
async def compliance_overview(
    current_user: ManagerOrAdmin,
    db: DB,
    limits: Limits,
    day: date | None = Query(None, alias="date"),
):
    """Eine Zeile je aktivem Fahrer der Organisation, nicht-konforme zuerst."""
    now = local_now()
    reference_date = day or now.date()

    driver_result = await db.execute(
        select(User).where(
            User.organization_id == current_user.organization_id,
            User.role == "driver",
            User.is_active == True,  # noqa: E712
        )
    )
    drivers = driver_result.scalars().all()

    # Einträge aller Fahrer in einem Query laden
    entries_by_driver: dict[uuid.UUID, list[TimeEntry]] = {d.id: [] for d in drivers}
    if drivers:
        window_start, window_end = _history_window(reference_date, limits)
        entry_result = await db.execute(
            select(TimeEntry).where(
                TimeEntry.driver_id.in_(entries_by_driver.keys()),
                TimeEntry.entry_date >= window_start,
                TimeEntry.entry_date <= window_end,
            )
        )
        for entry in entry_result.scalars().all():
            entries_by_driver[entry.driver_id].append(entry)

    rows = []
    for driver in drivers:
        analysis = analyze_wtd_compliance(entries_by_driver[driver.id], reference_date, limits, now=now)
        rows.append(
            DriverComplianceSummary(
                driver_id=driver.id,
                driver_name=driver.full_name,
                overall_compliance=analysis.overall_compliance,
                compliance_score=analysis.compliance_score,
                daily_working_minutes=analysis.daily_working_minutes,
                weekly_working_minutes=analysis.weekly_working_minutes,
                critical_violations=analysis.critical_violations,
            )
        )

    rows.sort(key=lambda r: (r.overall_compliance, r.compliance_score, r.driver_name))
    return rows
