"""
Zeiterfassung der Fahrer – Stempeln (Beginn/Ende/Pause) und manuelle Korrektur.
"""
import logging
import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, status, Query
from sqlalchemy import select

from drivetime.api.deps import DB, CurrentUser, ManagerOrAdmin, PRIVILEGED_ROLES, resolve_driver
from drivetime.models.time_entry import TimeEntry
from drivetime.schemas.time_entry import (
    ClockRequest, TimeEntryCreate, TimeEntryUpdate, TimeEntryOut, TimeStatsOut,
    validate_entry_times,
)
from drivetime.services.wtd_service import (
    STATUS_ACTIVE, STATUS_ON_BREAK, STATUS_COMPLETED, entry_status,
)
from drivetime.utils.local_time import local_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-entries", tags=["time-entries"])

OPEN_STATUSES = (STATUS_ACTIVE, STATUS_ON_BREAK)
TIME_FIELDS = {"clock_in_time", "clock_out_time", "break_start_time", "break_end_time"}


async def _today_entry(current_user, db, today: date) -> TimeEntry | None:
    result = await db.execute(
        select(TimeEntry).where(
            TimeEntry.driver_id == current_user.id,
            TimeEntry.entry_date == today,
        )
    )
    return result.scalar_one_or_none()


async def _open_entry_or_404(current_user, db, today: date) -> TimeEntry:
    entry = await _today_entry(current_user, db, today)
    if entry is None or entry.status not in OPEN_STATUSES:
        raise HTTPException(status_code=404, detail="No active time entry for today")
    return entry


async def _get_entry(entry_id: uuid.UUID, current_user, db) -> TimeEntry:
    result = await db.execute(
        select(TimeEntry).where(
            TimeEntry.id == entry_id,
            TimeEntry.organization_id == current_user.organization_id,
        )
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


# ── Lesen ────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[TimeEntryOut])
async def list_time_entries(
    current_user: CurrentUser,
    db: DB,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    driver_id: uuid.UUID | None = Query(None),
):
    driver = await resolve_driver(current_user, db, driver_id)
    conditions = [TimeEntry.driver_id == driver.id]
    if start_date:
        conditions.append(TimeEntry.entry_date >= start_date)
    if end_date:
        conditions.append(TimeEntry.entry_date <= end_date)

    result = await db.execute(
        select(TimeEntry).where(*conditions).order_by(TimeEntry.entry_date.desc())
    )
    return result.scalars().all()


@router.get("/today", response_model=TimeEntryOut | None)
async def get_today_entry(current_user: CurrentUser, db: DB):
    return await _today_entry(current_user, db, local_now().date())


@router.get("/stats", response_model=TimeStatsOut)
async def get_time_stats(
    current_user: CurrentUser,
    db: DB,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    driver_id: uuid.UUID | None = Query(None),
):
    driver = await resolve_driver(current_user, db, driver_id)
    conditions = [TimeEntry.driver_id == driver.id]
    if start_date:
        conditions.append(TimeEntry.entry_date >= start_date)
    if end_date:
        conditions.append(TimeEntry.entry_date <= end_date)

    result = await db.execute(select(TimeEntry).where(*conditions))
    entries = result.scalars().all()

    total_hours = sum(e.total_hours or 0 for e in entries)
    return TimeStatsOut(
        total_hours=round(total_hours, 2),
        total_overtime=round(sum(e.overtime_hours for e in entries), 2),
        total_breaks=round(sum(e.break_hours for e in entries), 2),
        average_hours_per_day=round(total_hours / len(entries), 2) if entries else 0,
        total_days=len(entries),
    )


# ── Stempeln ─────────────────────────────────────────────────────────────────

@router.post("/clock-in", response_model=TimeEntryOut, status_code=status.HTTP_201_CREATED)
async def clock_in(current_user: CurrentUser, db: DB, payload: ClockRequest | None = None):
    now = local_now()
    if await _today_entry(current_user, db, now.date()):
        raise HTTPException(status_code=409, detail="Already clocked in today")

    entry = TimeEntry(
        organization_id=current_user.organization_id,
        driver_id=current_user.id,
        entry_date=now.date(),
        clock_in_time=now.time(),
        location_clock_in=(payload.location if payload else None) or "Unknown",
        status=STATUS_ACTIVE,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info("Driver %s clocked in at %s", current_user.id, entry.clock_in_time)
    return entry


@router.post("/clock-out", response_model=TimeEntryOut)
async def clock_out(current_user: CurrentUser, db: DB, payload: ClockRequest | None = None):
    now = local_now()
    entry = await _open_entry_or_404(current_user, db, now.date())

    # Laufende Pause wird mit dem Dienstende geschlossen
    if entry.status == STATUS_ON_BREAK:
        entry.break_end_time = now.time()

    entry.clock_out_time = now.time()
    entry.location_clock_out = (payload.location if payload else None) or "Unknown"
    entry.status = STATUS_COMPLETED
    await db.commit()
    await db.refresh(entry)
    logger.info("Driver %s clocked out at %s", current_user.id, entry.clock_out_time)
    return entry


@router.post("/break/start", response_model=TimeEntryOut)
async def start_break(current_user: CurrentUser, db: DB):
    now = local_now()
    entry = await _open_entry_or_404(current_user, db, now.date())
    if entry.status == STATUS_ON_BREAK:
        raise HTTPException(status_code=400, detail="Break already in progress")
    if entry.break_end_time is not None:
        raise HTTPException(status_code=400, detail="Break already recorded for today")

    entry.break_start_time = now.time()
    entry.status = STATUS_ON_BREAK
    await db.commit()
    await db.refresh(entry)
    return entry


@router.post("/break/end", response_model=TimeEntryOut)
async def end_break(current_user: CurrentUser, db: DB):
    now = local_now()
    entry = await _open_entry_or_404(current_user, db, now.date())
    if entry.status != STATUS_ON_BREAK:
        raise HTTPException(status_code=400, detail="No break in progress")

    entry.break_end_time = now.time()
    entry.status = STATUS_ACTIVE
    await db.commit()
    await db.refresh(entry)
    return entry


# ── Manuelle Korrektur (Manager/Admin) ───────────────────────────────────────

@router.post("", response_model=TimeEntryOut, status_code=status.HTTP_201_CREATED)
async def create_time_entry(payload: TimeEntryCreate, current_user: ManagerOrAdmin, db: DB):
    driver = await resolve_driver(current_user, db, payload.driver_id)

    existing = await db.execute(
        select(TimeEntry.id).where(
            TimeEntry.driver_id == driver.id,
            TimeEntry.entry_date == payload.entry_date,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Time entry for this date already exists")

    entry = TimeEntry(
        organization_id=current_user.organization_id,
        **payload.model_dump(exclude={"overnight"}),
    )
    entry.status = entry_status(entry)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.get("/{entry_id}", response_model=TimeEntryOut)
async def get_time_entry(entry_id: uuid.UUID, current_user: CurrentUser, db: DB):
    entry = await _get_entry(entry_id, current_user, db)
    # Fahrer dürfen nur eigene Einträge sehen
    if current_user.role not in PRIVILEGED_ROLES and entry.driver_id != current_user.id:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


@router.put("/{entry_id}", response_model=TimeEntryOut)
async def update_time_entry(
    entry_id: uuid.UUID, payload: TimeEntryUpdate, current_user: ManagerOrAdmin, db: DB
):
    entry = await _get_entry(entry_id, current_user, db)
    changes = payload.model_dump(exclude_unset=True, exclude={"overnight"})

    if TIME_FIELDS.intersection(changes):
        merged = {f: changes.get(f, getattr(entry, f)) for f in TIME_FIELDS}
        # Ein gespeicherter Nachtdienst bleibt ohne erneutes overnight-Flag gültig
        stored_overnight = (
            entry.clock_out_time is not None and entry.clock_out_time < entry.clock_in_time
        )
        try:
            validate_entry_times(
                merged["clock_in_time"], merged["clock_out_time"],
                merged["break_start_time"], merged["break_end_time"],
                payload.overnight or stored_overnight,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    for field, value in changes.items():
        if field == "clock_in_time" and value is None:
            continue
        setattr(entry, field, value)
    entry.status = entry_status(entry)

    await db.commit()
    await db.refresh(entry)
    logger.info("Time entry %s corrected by %s: %s", entry_id, current_user.id, sorted(changes))
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(entry_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    entry = await _get_entry(entry_id, current_user, db)
    await db.delete(entry)
    await db.commit()
