import logging

from drivetime.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL-Echo läuft über engine(echo=DEBUG), nicht doppelt loggen
    logging.getLogger("sqlalchemy.engine").propagate = not settings.DEBUG
