import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import String, DateTime, ForeignKey, Integer, Time, Date, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from drivetime.core.database import Base

STANDARD_DAY_HOURS = 8


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        UniqueConstraint("driver_id", "entry_date", name="uq_time_entries_driver_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    driver_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    clock_in_time: Mapped[time] = mapped_column(Time, nullable=False)
    clock_out_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    driving_minutes: Mapped[int] = mapped_column(Integer, default=0)

    location_clock_in: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_clock_out: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(50), default="active")  # active | on_break | completed

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    driver: Mapped["User"] = relationship(back_populates="time_entries")

    @property
    def break_hours(self) -> float:
        if self.break_start_time is None or self.break_end_time is None:
            return 0
        start = datetime.combine(self.entry_date, self.break_start_time)
        end = datetime.combine(self.entry_date, self.break_end_time)
        if end < start:
            end += timedelta(days=1)
        return (end - start).total_seconds() / 3600

    @property
    def total_hours(self) -> float | None:
        """Netto-Arbeitszeit; None solange der Dienst läuft."""
        if self.clock_out_time is None:
            return None
        start = datetime.combine(self.entry_date, self.clock_in_time)
        end = datetime.combine(self.entry_date, self.clock_out_time)
        if end < start:
            end += timedelta(days=1)
        return max(0, (end - start).total_seconds() / 3600 - self.break_hours)

    @property
    def overtime_hours(self) -> float:
        total = self.total_hours or 0
        return max(0, total - STANDARD_DAY_HOURS)
