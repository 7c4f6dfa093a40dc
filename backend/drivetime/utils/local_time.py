"""
Lokale Zeit der Organisation. Zeiteinträge speichern Datum + Uhrzeit ohne
Zeitzone (wie auf der Stempeluhr), daher wird hier naiv gerechnet.
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from drivetime.core.config import settings


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None, microsecond=0)


def local_today() -> date:
    return local_now().date()
