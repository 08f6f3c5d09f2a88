from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rota.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StaffMemberRecord(Base):
    __tablename__ = "staff_members"
    __table_args__ = (
        CheckConstraint(
            "role IN ('head_bartender', 'senior_bartender', 'bartender', 'bar_back', 'support')",
            name="ck_staff_members_role",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    staff_id: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(40), nullable=False)
    break_timings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class WeeklyEvent(Base):
    __tablename__ = "weekly_events"
    __table_args__ = (UniqueConstraint("week_start", "day", name="uq_weekly_events_week_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    week_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)


class StaffAllocation(Base):
    __tablename__ = "staff_allocations"
    __table_args__ = (
        UniqueConstraint("staff_member_id", "allocation_date", name="uq_staff_allocations_staff_date"),
        CheckConstraint(
            "shift_type IN ('off', 'opening', 'closing', 'pickup', 'brunch', 'early_shift', 'late_shift', 'regular')",
            name="ck_staff_allocations_shift_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    staff_member_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    allocation_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    shift_type: Mapped[str] = mapped_column(String(20), nullable=False)
    time_start: Mapped[str | None] = mapped_column(String(5), nullable=True)
    time_end: Mapped[str | None] = mapped_column(String(5), nullable=True)
    station: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    station_assignment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
