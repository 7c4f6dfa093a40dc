from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drivetime.core.config import settings
from drivetime.core.database import create_tables
from drivetime.core.logging_config import configure_logging
from drivetime.api.v1.time_entries import router as time_entries_router
from drivetime.api.v1.time_off import router as time_off_router
from drivetime.api.v1.weekly_rest import router as weekly_rest_router
from drivetime.api.v1.compliance import router as compliance_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Tabellen beim Start anlegen (SQLite / lokale Entwicklung)
    await create_tables()
    yield


app = FastAPI(
    title="Drivetime API",
    description="Driver time recording and Working Time Directive compliance",
    version="1.0.0",
    lifespan=lifespan,
    # Swagger UI nur in Entwicklung – in Produktion DEBUG=false setzen
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"

app.include_router(time_entries_router, prefix=API_PREFIX)
app.include_router(time_off_router, prefix=API_PREFIX)
app.include_router(weekly_rest_router, prefix=API_PREFIX)
app.include_router(compliance_router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Drivetime API", "version": "1.0.0"}
