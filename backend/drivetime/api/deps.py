from typing import Annotated
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from drivetime.core.config import settings
from drivetime.core.database import get_db
from drivetime.core.security import decode_token
from drivetime.models.user import User
from drivetime.services.wtd_service import WTDLimits

security = HTTPBearer()

PRIVILEGED_ROLES = ("admin", "manager")


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise credentials_exception
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, KeyError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def get_current_manager_or_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allows admin and manager (transport manager) roles."""
    if current_user.role not in PRIVILEGED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions – admin or manager required",
        )
    return current_user


def get_wtd_limits() -> WTDLimits:
    return WTDLimits.from_settings(settings)


async def resolve_driver(
    current_user: User,
    db: AsyncSession,
    driver_id: uuid.UUID | None = None,
) -> User:
    """
    Fahrer, dessen Daten gelesen werden. Fahrer sehen immer nur sich selbst
    (ein fremder driver_id-Filter wird ignoriert), Manager/Admins jeden
    Fahrer der eigenen Organisation.
    """
    if current_user.role not in PRIVILEGED_ROLES or driver_id is None or driver_id == current_user.id:
        return current_user

    result = await db.execute(
        select(User).where(
            User.id == driver_id,
            User.organization_id == current_user.organization_id,
        )
    )
    driver = result.scalar_one_or_none()
    if driver is None:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


CurrentUser = Annotated[User, Depends(get_current_user)]
ManagerOrAdmin = Annotated[User, Depends(get_current_manager_or_admin)]
DB = Annotated[AsyncSession, Depends(get_db)]
Limits = Annotated[WTDLimits, Depends(get_wtd_limits)]
