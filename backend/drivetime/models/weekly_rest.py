import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Numeric, Text, Date, Index
from sqlalchemy.orm import Mapped, mapped_column

from drivetime.core.database import Base


class WeeklyRest(Base):
    __tablename__ = "weekly_rest"
    __table_args__ = (
        Index("ix_weekly_rest_driver_week", "driver_id", "week_start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    driver_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    rest_start_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rest_end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    total_rest_hours: Mapped[float] = mapped_column(Numeric(6, 2), default=0)

    rest_type: Mapped[str] = mapped_column(
        String(50), default="full_weekly_rest"
    )  # full_weekly_rest | reduced_weekly_rest | compensated_rest
    compensation_required: Mapped[bool] = mapped_column(Boolean, default=False)
    compensation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
