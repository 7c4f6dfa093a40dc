"""
Celery-Tasks für die automatische Erfassung der wöchentlichen Ruhezeit.
"""
import logging

from drivetime.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="drivetime.tasks.weekly_rest_tasks.record_previous_week_rest")
def record_previous_week_rest():
    """Erfasst die Ruhezeit der Vorwoche für alle aktiven Fahrer."""
    import asyncio
    return asyncio.run(_record_previous_week())


def previous_week_start(today):
    from dateutil.relativedelta import relativedelta, MO
    # Montag dieser Woche, dann eine Woche zurück
    return today + relativedelta(weekday=MO(-1), weeks=-1)


async def _record_previous_week(session_factory=None, today=None) -> dict:
    from sqlalchemy import select
    from drivetime.core.config import settings
    from drivetime.core.database import AsyncSessionLocal
    from drivetime.models.user import User
    from drivetime.services.weekly_rest_service import WeeklyRestService
    from drivetime.services.wtd_service import WTDLimits
    from drivetime.utils.local_time import local_now, local_today

    session_factory = session_factory or AsyncSessionLocal
    week_start = previous_week_start(today or local_today())
    created = failed = 0

    async with session_factory() as db:
        # Nur Spalten laden: Rows verfallen beim Rollback nicht wie ORM-Objekte
        result = await db.execute(
            select(User.id, User.organization_id).where(
                User.role == "driver", User.is_active == True  # noqa: E712
            )
        )
        drivers = result.all()

        svc = WeeklyRestService(db, WTDLimits.from_settings(settings))
        for driver in drivers:
            try:
                record, _ = await svc.auto_record(driver, week_start, now=local_now())
                await db.commit()
                if record is not None:
                    created += 1
            except Exception as e:
                await db.rollback()
                failed += 1
                logger.error("Weekly rest auto-record failed for driver %s: %s", driver.id, e)

    logger.info("Weekly rest for week %s: %d created, %d failed", week_start, created, failed)
    return {"week_start": week_start.isoformat(), "created": created, "failed": failed}
