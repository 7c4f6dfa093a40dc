from celery import Celery
from celery.schedules import crontab

from drivetime.core.config import settings

celery_app = Celery(
    "drivetime",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["drivetime.tasks.weekly_rest_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # Montags um 02:00: Wochenruhe der Vorwoche für alle Fahrer erfassen
        "weekly-rest-auto-record": {
            "task": "drivetime.tasks.weekly_rest_tasks.record_previous_week_rest",
            "schedule": crontab(hour=2, minute=0, day_of_week="mon"),
        },
    },
)
