"""
WeeklyRestService: Wöchentliche Ruhezeit eines Fahrers auswerten und erfassen.

Die Einstufung (full / reduced / missing) basiert auf dem erfassten
WeeklyRest-Datensatz; die aus den Zeiteinträgen gemessene Ruhezeit wird
zusätzlich ausgewiesen und beim automatischen Erfassen verwendet.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivetime.services.wtd_service import WTDLimits, analyze_wtd_compliance, week_bounds

logger = logging.getLogger(__name__)

WEEKLY_WORK_WARNING_MARGIN_HOURS = 5


@dataclass
class WeeklyRestAnalysis:
    week_start: date
    week_end: date
    total_work_hours: float = 0
    required_weekly_rest: float = 45
    actual_rest_hours: float = 0
    measured_rest_hours: float = 0
    rest_compliance: bool = False
    rest_type: str = "missing"  # full | reduced | missing
    compensation_required: bool = False
    compensation_date: date | None = None
    warnings: list[str] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)


class WeeklyRestService:

    def __init__(self, db: AsyncSession, limits: WTDLimits | None = None):
        self.db = db
        self.limits = limits or WTDLimits()

    async def _entries_around(self, driver_id: uuid.UUID, week_start: date, week_end: date):
        """Einträge der Woche plus Nachbartage (für Ruhezeiten über den Wochenrand)."""
        from drivetime.models.time_entry import TimeEntry

        result = await self.db.execute(
            select(TimeEntry).where(
                TimeEntry.driver_id == driver_id,
                TimeEntry.entry_date >= week_start - timedelta(days=1),
                TimeEntry.entry_date <= week_end + timedelta(days=1),
            )
        )
        return result.scalars().all()

    async def get_record(self, driver_id: uuid.UUID, week_start: date):
        from drivetime.models.weekly_rest import WeeklyRest

        _, week_end = week_bounds(week_start, self.limits.week_start)
        result = await self.db.execute(
            select(WeeklyRest)
            .where(
                WeeklyRest.driver_id == driver_id,
                WeeklyRest.week_start_date >= week_start,
                WeeklyRest.week_end_date <= week_end,
            )
            .order_by(WeeklyRest.week_start_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def analyze(
        self, driver_id: uuid.UUID, week_start: date, now: datetime | None = None
    ) -> WeeklyRestAnalysis:
        week_start, week_end = week_bounds(week_start, self.limits.week_start)
        entries = await self._entries_around(driver_id, week_start, week_end)
        wtd = analyze_wtd_compliance(entries, week_end, self.limits, now=now)
        record = await self.get_record(driver_id, week_start)

        max_weekly_hours = self.limits.max_weekly_working_minutes / 60
        result = WeeklyRestAnalysis(
            week_start=week_start,
            week_end=week_end,
            total_work_hours=round(wtd.weekly_working_minutes / 60, 2),
            required_weekly_rest=self.limits.min_weekly_rest_hours,
            actual_rest_hours=float(record.total_rest_hours) if record else 0,
            measured_rest_hours=round(wtd.weekly_rest_hours or 0, 2),
        )

        if result.actual_rest_hours >= self.limits.min_weekly_rest_hours:
            result.rest_type = "full"
            result.rest_compliance = True
        elif result.actual_rest_hours >= self.limits.reduced_weekly_rest_hours:
            result.rest_type = "reduced"
            result.rest_compliance = True
            result.compensation_required = True
            result.compensation_date = record.compensation_date

        if result.total_work_hours > max_weekly_hours:
            result.violations.append(
                f"Weekly working time ({result.total_work_hours}h) exceeds WTD limit ({max_weekly_hours:g}h)"
            )
        elif result.total_work_hours > max_weekly_hours - WEEKLY_WORK_WARNING_MARGIN_HOURS:
            result.warnings.append(
                f"Weekly working time ({result.total_work_hours}h) approaching WTD limit ({max_weekly_hours:g}h)"
            )

        if result.rest_type == "missing":
            result.violations.append("No weekly rest period recorded")
        if result.compensation_required and not result.compensation_date:
            result.warnings.append("Compensation for reduced weekly rest not scheduled")

        return result

    async def auto_record(
        self, driver, week_start: date, now: datetime | None = None
    ):
        """
        Legt den WeeklyRest-Datensatz für eine Woche an, sofern noch keiner
        existiert. Gibt (record | None, analysis) zurück.
        """
        from drivetime.models.weekly_rest import WeeklyRest

        week_start, week_end = week_bounds(week_start, self.limits.week_start)
        analysis = await self.analyze(driver.id, week_start, now=now)

        if await self.get_record(driver.id, week_start):
            return None, analysis

        rest_type = "full_weekly_rest"
        compensation_required = False
        if analysis.total_work_hours > self.limits.max_weekly_working_minutes / 60:
            rest_type = "reduced_weekly_rest"
            compensation_required = True

        record = WeeklyRest(
            organization_id=driver.organization_id,
            driver_id=driver.id,
            week_start_date=week_start,
            week_end_date=week_end,
            total_rest_hours=analysis.measured_rest_hours or self.limits.min_weekly_rest_hours,
            rest_type=rest_type,
            compensation_required=compensation_required,
            notes="Automatically recorded weekly rest period",
        )
        self.db.add(record)
        await self.db.flush()
        logger.info(
            "Weekly rest recorded for driver %s, week %s (%s)", driver.id, week_start, rest_type
        )

        analysis = await self.analyze(driver.id, week_start, now=now)
        return record, analysis
