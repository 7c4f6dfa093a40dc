"""
Urlaubs-/Abwesenheitsanträge der Fahrer.
"""
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from drivetime.api.deps import DB, CurrentUser, ManagerOrAdmin, PRIVILEGED_ROLES
from drivetime.models.time_off import TimeOffRequest
from drivetime.schemas.time_off import TimeOffRequestCreate, TimeOffReview, TimeOffRequestOut

router = APIRouter(prefix="/time-off", tags=["time-off"])


@router.get("", response_model=list[TimeOffRequestOut])
async def list_time_off_requests(
    current_user: CurrentUser,
    db: DB,
    status_filter: str | None = None,
):
    conditions = [TimeOffRequest.organization_id == current_user.organization_id]
    # Fahrer: nur eigene Anträge
    if current_user.role not in PRIVILEGED_ROLES:
        conditions.append(TimeOffRequest.driver_id == current_user.id)
    if status_filter:
        conditions.append(TimeOffRequest.status == status_filter)

    result = await db.execute(
        select(TimeOffRequest).where(*conditions).order_by(TimeOffRequest.created_at.desc())
    )
    return result.scalars().all()


@router.post("", response_model=TimeOffRequestOut, status_code=status.HTTP_201_CREATED)
async def create_time_off_request(payload: TimeOffRequestCreate, current_user: CurrentUser, db: DB):
    request = TimeOffRequest(
        organization_id=current_user.organization_id,
        driver_id=current_user.id,
        status="pending",
        **payload.model_dump(),
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    return request


async def _review(
    request_id: uuid.UUID, new_status: str, payload: TimeOffReview | None, current_user, db
) -> TimeOffRequest:
    result = await db.execute(
        select(TimeOffRequest).where(
            TimeOffRequest.id == request_id,
            TimeOffRequest.organization_id == current_user.organization_id,
        )
    )
    request = result.scalar_one_or_none()
    if not request:
        raise HTTPException(status_code=404, detail="Time off request not found")
    if request.status != "pending":
        raise HTTPException(
            status_code=400,
            detail=f"Request cannot be reviewed – current status: {request.status}",
        )

    request.status = new_status
    request.reviewed_by = current_user.id
    request.reviewed_at = datetime.now(timezone.utc)
    if payload and payload.review_note is not None:
        request.review_note = payload.review_note
    await db.commit()
    await db.refresh(request)
    return request


@router.post("/{request_id}/approve", response_model=TimeOffRequestOut)
async def approve_time_off_request(
    request_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB, payload: TimeOffReview | None = None
):
    return await _review(request_id, "approved", payload, current_user, db)


@router.post("/{request_id}/reject", response_model=TimeOffRequestOut)
async def reject_time_off_request(
    request_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB, payload: TimeOffReview | None = None
):
    return await _review(request_id, "rejected", payload, current_user, db)
