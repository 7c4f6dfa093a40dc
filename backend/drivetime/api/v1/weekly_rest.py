"""
Wöchentliche Ruhezeit – Erfassung, Auswertung und automatische Erfassung.
"""
import uuid
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from drivetime.api.deps import DB, CurrentUser, Limits, PRIVILEGED_ROLES, resolve_driver
from drivetime.models.weekly_rest import WeeklyRest
from drivetime.schemas.weekly_rest import (
    WeeklyRestCreate, WeeklyRestUpdate, WeeklyRestOut, WeeklyRestAnalysisOut, AutoRecordOut,
)
from drivetime.services.weekly_rest_service import WeeklyRestService
from drivetime.services.wtd_service import week_bounds
from drivetime.utils.local_time import local_now, local_today

router = APIRouter(prefix="/weekly-rest", tags=["weekly-rest"])


async def _get_record(record_id: uuid.UUID, current_user, db) -> WeeklyRest:
    result = await db.execute(
        select(WeeklyRest).where(
            WeeklyRest.id == record_id,
            WeeklyRest.organization_id == current_user.organization_id,
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=404, detail="Weekly rest record not found")
    if current_user.role not in PRIVILEGED_ROLES and record.driver_id != current_user.id:
        raise HTTPException(status_code=404, detail="Weekly rest record not found")
    return record


@router.get("", response_model=list[WeeklyRestOut])
async def list_weekly_rest(
    current_user: CurrentUser,
    db: DB,
    limits: Limits,
    week_start: date | None = Query(None),
    driver_id: uuid.UUID | None = Query(None),
):
    """Datensätze der Woche (Standard: aktuelle Woche)."""
    driver = await resolve_driver(current_user, db, driver_id)
    start, end = week_bounds(week_start or local_today(), limits.week_start)

    result = await db.execute(
        select(WeeklyRest)
        .where(
            WeeklyRest.driver_id == driver.id,
            WeeklyRest.week_start_date >= start,
            WeeklyRest.week_end_date <= end,
        )
        .order_by(WeeklyRest.week_start_date.desc())
    )
    return result.scalars().all()


@router.post("", response_model=WeeklyRestOut, status_code=status.HTTP_201_CREATED)
async def create_weekly_rest(payload: WeeklyRestCreate, current_user: CurrentUser, db: DB):
    data = payload.model_dump()
    if data["week_end_date"] is None:
        data["week_end_date"] = payload.week_start_date + timedelta(days=6)
    if data["week_end_date"] < payload.week_start_date:
        raise HTTPException(status_code=400, detail="week_end_date must not be before week_start_date")

    record = WeeklyRest(
        organization_id=current_user.organization_id,
        driver_id=current_user.id,
        **data,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


@router.get("/analysis", response_model=WeeklyRestAnalysisOut)
async def weekly_rest_analysis(
    current_user: CurrentUser,
    db: DB,
    limits: Limits,
    week_start: date | None = Query(None),
    driver_id: uuid.UUID | None = Query(None),
):
    driver = await resolve_driver(current_user, db, driver_id)
    svc = WeeklyRestService(db, limits)
    analysis = await svc.analyze(driver.id, week_start or local_today(), now=local_now())
    return WeeklyRestAnalysisOut.model_validate(analysis)


@router.post("/auto-record", response_model=AutoRecordOut)
async def auto_record_weekly_rest(
    current_user: CurrentUser,
    db: DB,
    limits: Limits,
    week_start: date | None = Query(None),
):
    """Erfasst die Ruhezeit der Woche automatisch (idempotent)."""
    svc = WeeklyRestService(db, limits)
    record, analysis = await svc.auto_record(
        current_user, week_start or local_today(), now=local_now()
    )
    await db.commit()

    if record is None:
        return AutoRecordOut(
            created=False,
            message="Weekly rest already recorded for this week",
            analysis=WeeklyRestAnalysisOut.model_validate(analysis),
        )
    await db.refresh(record)
    return AutoRecordOut(
        created=True,
        message="Weekly rest recorded successfully",
        analysis=WeeklyRestAnalysisOut.model_validate(analysis),
        record=WeeklyRestOut.model_validate(record),
    )


@router.put("/{record_id}", response_model=WeeklyRestOut)
async def update_weekly_rest(
    record_id: uuid.UUID, payload: WeeklyRestUpdate, current_user: CurrentUser, db: DB
):
    record = await _get_record(record_id, current_user, db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    await db.commit()
    await db.refresh(record)
    return record


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_weekly_rest(record_id: uuid.UUID, current_user: CurrentUser, db: DB):
    record = await _get_record(record_id, current_user, db)
    await db.delete(record)
    await db.commit()
