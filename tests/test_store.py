from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import select

import rota.db as rota_db
from rota import store
from rota.models import StaffAllocation, StaffMemberRecord
from rota.schemas import AllocationPlan, BreakTimings, OffCell, StaffMember, Station, TimeRange, WorkingCell

WEEK = date(2026, 3, 2)


def _staff(staff_id: str, role: str = "bartender") -> StaffMember:
    return StaffMember(id=staff_id, name=staff_id.title(), role=role)


def _shift(area: str = "Indoor") -> WorkingCell:
    return WorkingCell(
        time_range=TimeRange(start="17:00", end="03:00"),
        shift_type="late_shift",
        station=Station(kind="station", area=area, slot=1, responsibilities="Operate station"),
    )


def test_roster_keeps_order_and_deactivates_removed_staff():
    db = rota_db.SessionLocal()
    first = store.replace_roster(
        db,
        [
            _staff("b2"),
            StaffMember(id="b1", name="Bea", role="bartender", break_timings=BreakTimings(first_wave_start="18:00")),
            _staff("bb1", "bar_back"),
        ],
    )
    assert [m.id for m in first] == ["b2", "b1", "bb1"]
    assert first[1].break_timings.first_wave_start == "18:00"

    second = store.replace_roster(db, [_staff("b1"), _staff("b3")])
    assert [m.id for m in second] == ["b1", "b3"]
    assert second[0].break_timings is None

    inactive = db.scalars(select(StaffMemberRecord).where(StaffMemberRecord.is_active.is_(False))).all()
    assert sorted(r.staff_id for r in inactive) == ["b2", "bb1"]
    db.close()


def test_events_default_until_a_week_is_saved():
    db = rota_db.SessionLocal()
    assert store.get_week_events(db, WEEK) == store.DEFAULT_EVENTS
    assert store.get_busy_days(db, WEEK) == {"Tuesday", "Friday", "Saturday"}

    saved = store.replace_week_events(db, WEEK, {"Thursday": "  Quiz  ", "Friday": " "})
    assert saved == {"Thursday": "Quiz"}
    assert store.get_busy_days(db, WEEK) == {"Thursday"}

    assert store.replace_week_events(db, WEEK, {}) == {}
    assert store.get_busy_days(db, WEEK) == set()
    assert store.get_week_events(db, WEEK + timedelta(days=7)) == store.DEFAULT_EVENTS
    db.close()


def test_plan_round_trips_through_allocations():
    db = rota_db.SessionLocal()
    plan = AllocationPlan()
    plan.set_cell("b1", "Monday", OffCell())
    plan.set_cell("b1", "Tuesday", _shift("Outdoor"))
    plan.set_cell("b2", "Sunday", WorkingCell(time_range=TimeRange(start="15:00", end="01:00"), shift_type="regular"))

    assert store.save_plan(db, WEEK, plan) == 3
    assert store.load_plan(db, WEEK) == plan

    rows = db.scalars(select(StaffAllocation).order_by(StaffAllocation.allocation_date)).all()
    assert [(r.allocation_date, r.shift_type) for r in rows] == [
        (WEEK, "off"),
        (WEEK + timedelta(days=1), "late_shift"),
        (WEEK + timedelta(days=6), "regular"),
    ]
    assert rows[0].station_assignment == store.OFF_LABEL
    assert rows[1].station_assignment == "Outdoor - Station 1: Operate station"
    db.close()


def test_saving_again_overwrites_only_the_given_cells():
    db = rota_db.SessionLocal()
    plan = AllocationPlan()
    plan.set_cell("b1", "Monday", OffCell())
    plan.set_cell("b1", "Tuesday", _shift())
    store.save_plan(db, WEEK, plan)

    update = AllocationPlan()
    update.set_cell("b1", "Monday", _shift())
    store.save_plan(db, WEEK, update)

    loaded = store.load_plan(db, WEEK)
    assert loaded.is_working("b1", "Monday")
    assert loaded.is_working("b1", "Tuesday")
    assert db.scalar(select(StaffAllocation).where(StaffAllocation.allocation_date == WEEK)) is not None
    assert len(db.scalars(select(StaffAllocation)).all()) == 2
    db.close()


def test_prior_week_off_counts_read_the_previous_seven_days():
    db = rota_db.SessionLocal()
    previous = AllocationPlan()
    previous.set_cell("b1", "Monday", OffCell())
    previous.set_cell("b1", "Thursday", OffCell())
    previous.set_cell("b1", "Friday", _shift())
    previous.set_cell("b2", "Sunday", OffCell())
    previous.set_cell("b3", "Tuesday", _shift())
    store.save_plan(db, WEEK - timedelta(days=7), previous)

    current = AllocationPlan()
    current.set_cell("b1", "Monday", OffCell())
    store.save_plan(db, WEEK, current)

    assert store.get_prior_week_off_counts(db, WEEK) == {"b1": 2, "b2": 1, "b3": 0}
    assert store.get_prior_week_off_counts(db, WEEK - timedelta(days=14)) == {}
    db.close()


def test_prior_counts_agree_with_the_loaded_previous_week():
    db = rota_db.SessionLocal()
    previous_start = WEEK - timedelta(days=7)
    db.add(
        StaffAllocation(
            staff_member_id="b1",
            allocation_date=previous_start,
            shift_type="late_shift",
            time_start="17:00",
            time_end="03:00",
            station_assignment=store.OFF_LABEL,
        )
    )
    db.add(StaffAllocation(staff_member_id="b1", allocation_date=previous_start + timedelta(days=3), shift_type="off"))
    db.commit()

    previous = store.load_plan(db, previous_start)
    counts = store.get_prior_week_off_counts(db, WEEK)

    assert previous.is_working("b1", "Monday")
    assert counts == {"b1": len(previous.days_off("b1"))}
    assert counts == {"b1": 1}
    db.close()
