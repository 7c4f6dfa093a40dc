from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from drivetime.core.config import settings


def engine_options(database_url: str) -> dict:
    """SQLite braucht check_same_thread=False; Server-DBs prüfen Verbindungen vor der Nutzung."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Celery-Worker halten Verbindungen über lange Leerlaufzeiten zwischen den Wochenläufen
    return {"pool_pre_ping": True, "pool_recycle": 1800}


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    """Erstellt alle Tabellen (für lokale Entwicklung ohne Migrationen)."""
    import drivetime.models  # noqa – alle Models importieren
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
