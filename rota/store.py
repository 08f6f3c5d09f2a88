from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rota.models import StaffAllocation, StaffMemberRecord, WeeklyEvent
from rota.schemas import (
    DAYS_OF_WEEK,
    AllocationPlan,
    BreakTimings,
    DayOfWeek,
    OffCell,
    StaffMember,
    Station,
    TimeRange,
    WorkingCell,
    busy_days_from_events,
)
from rota.stations import render_station

logger = logging.getLogger(__name__)

DEFAULT_EVENTS: dict[str, str] = {"Tuesday": "Ladies Night", "Friday": "Weekend", "Saturday": "Brunch"}
OFF_LABEL = "OFF"


def week_dates(week_start: date) -> dict[DayOfWeek, date]:
    return {day: week_start + timedelta(days=i) for i, day in enumerate(DAYS_OF_WEEK)}


def serialize_staff_record(record: StaffMemberRecord) -> StaffMember:
    return StaffMember(
        id=record.staff_id,
        name=record.name,
        role=record.role,
        break_timings=BreakTimings.model_validate(record.break_timings) if record.break_timings else None,
    )


def get_roster(db: Session) -> list[StaffMember]:
    records = db.scalars(
        select(StaffMemberRecord)
        .where(StaffMemberRecord.is_active.is_(True))
        .order_by(StaffMemberRecord.sort_order, StaffMemberRecord.id)
    ).all()
    return [serialize_staff_record(record) for record in records]


def replace_roster(db: Session, staff: list[StaffMember]) -> list[StaffMember]:
    existing = {record.staff_id: record for record in db.scalars(select(StaffMemberRecord)).all()}
    incoming_ids = {member.id for member in staff}
    for index, member in enumerate(staff):
        record = existing.get(member.id)
        if record is None:
            record = StaffMemberRecord(staff_id=member.id)
            db.add(record)
        record.name = member.name
        record.role = member.role
        record.break_timings = member.break_timings.model_dump() if member.break_timings else None
        record.is_active = True
        record.sort_order = index
    # Removed staff are deactivated so their saved allocations keep resolving.
    for staff_id, record in existing.items():
        if staff_id not in incoming_ids:
            record.is_active = False
    db.commit()
    return get_roster(db)


def get_prior_week_off_counts(db: Session, week_start: date) -> dict[str, int]:
    previous_start = week_start - timedelta(days=7)
    rows = db.scalars(
        select(StaffAllocation).where(
            StaffAllocation.allocation_date >= previous_start,
            StaffAllocation.allocation_date < week_start,
        )
    ).all()
    counts: dict[str, int] = defaultdict(int)
    for row in rows:
        counts[row.staff_member_id] += 1 if row.shift_type == "off" else 0
    return dict(counts)


def get_week_events(db: Session, week_start: date) -> dict[str, str]:
    rows = db.scalars(select(WeeklyEvent).where(WeeklyEvent.week_start == week_start)).all()
    if not rows:
        return dict(DEFAULT_EVENTS)
    return {row.day: row.event_name for row in rows if row.event_name.strip()}


def replace_week_events(db: Session, week_start: date, events: dict[str, str]) -> dict[str, str]:
    db.execute(delete(WeeklyEvent).where(WeeklyEvent.week_start == week_start))
    # Every day gets a row, so an explicitly empty week does not fall back to the defaults.
    for day in DAYS_OF_WEEK:
        db.add(WeeklyEvent(week_start=week_start, day=day, event_name=(events.get(day) or "").strip()))
    db.commit()
    return get_week_events(db, week_start)


def get_busy_days(db: Session, week_start: date) -> set[DayOfWeek]:
    return busy_days_from_events(get_week_events(db, week_start))


def _allocation_row(staff_id: str, on: date, cell: OffCell | WorkingCell) -> StaffAllocation:
    if isinstance(cell, OffCell):
        return StaffAllocation(
            staff_member_id=staff_id,
            allocation_date=on,
            shift_type="off",
            station_assignment=OFF_LABEL,
        )
    return StaffAllocation(
        staff_member_id=staff_id,
        allocation_date=on,
        shift_type=cell.shift_type,
        time_start=cell.time_range.start,
        time_end=cell.time_range.end,
        station=cell.station.model_dump() if cell.station else None,
        station_assignment=render_station(cell.station),
    )


def save_plan(db: Session, week_start: date, plan: AllocationPlan) -> int:
    dates = week_dates(week_start)
    saved = 0
    for staff_id, days in plan.cells.items():
        if not days:
            continue
        db.execute(
            delete(StaffAllocation).where(
                StaffAllocation.staff_member_id == staff_id,
                StaffAllocation.allocation_date.in_([dates[day] for day in days]),
            )
        )
        for day, cell in days.items():
            db.add(_allocation_row(staff_id, dates[day], cell))
            saved += 1
    db.commit()
    logger.info("Saved %d allocation(s) for week of %s", saved, week_start.isoformat())
    return saved


def _cell_from_row(row: StaffAllocation) -> OffCell | WorkingCell:
    if row.shift_type == "off":
        return OffCell()
    return WorkingCell(
        time_range=TimeRange(start=row.time_start, end=row.time_end),
        shift_type=row.shift_type,
        station=Station.model_validate(row.station) if row.station else None,
    )


def load_plan(db: Session, week_start: date) -> AllocationPlan:
    day_for_date = {on: day for day, on in week_dates(week_start).items()}
    rows = db.scalars(
        select(StaffAllocation)
        .where(
            StaffAllocation.allocation_date >= week_start,
            StaffAllocation.allocation_date < week_start + timedelta(days=7),
        )
        .order_by(StaffAllocation.staff_member_id, StaffAllocation.allocation_date)
    ).all()
    plan = AllocationPlan()
    for row in rows:
        plan.set_cell(row.staff_member_id, day_for_date[row.allocation_date], _cell_from_row(row))
    return plan
