from __future__ import annotations

import random
from collections.abc import Mapping, Sequence

from rota.policy import DEFAULT_POLICY, AllocationPolicy
from rota.schemas import (
    DAYS_OF_WEEK,
    ROLE_ORDER,
    AllocationPlan,
    Area,
    DayOfWeek,
    OffCell,
    ShiftType,
    StaffMember,
    Station,
    TimeRange,
    WorkingCell,
    group_by_role,
)


class SlotCycle:
    """Hands out station slots per area, wrapping once every slot is taken."""

    def __init__(self, sizes: Mapping[str, int]):
        self._sizes = dict(sizes)
        self._taken = {area: 0 for area in self._sizes}

    def take(self, area: Area) -> int:
        slot = self._taken[area] % self._sizes[area] + 1
        self._taken[area] += 1
        return slot


def head_shift(day: DayOfWeek, policy: AllocationPolicy) -> tuple[TimeRange, ShiftType]:
    if policy.is_brunch_day(day) or policy.is_pickup_day(day):
        return policy.windows.early, "early_shift"
    return policy.windows.late, "late_shift"


def bartender_shift(day: DayOfWeek, position: int, policy: AllocationPolicy) -> tuple[TimeRange, ShiftType]:
    # Position counts seniors first, then bartenders.
    if policy.is_brunch_day(day):
        return policy.windows.early, "early_shift"
    if policy.is_pickup_day(day) and position == 0:
        return policy.windows.early, "early_shift"
    return policy.windows.late, "late_shift"


def bar_back_shift(day: DayOfWeek, position: int, policy: AllocationPolicy) -> tuple[TimeRange, ShiftType]:
    windows = policy.windows
    if position == 0:
        if policy.is_pickup_day(day):
            return windows.bar_back_pickup, "pickup"
        if policy.is_brunch_day(day):
            return windows.bar_back_brunch, "brunch"
        if day == "Monday":
            return windows.bar_back_monday_opening, "opening"
        return windows.bar_back_opening, "opening"
    if day == "Wednesday":
        return windows.bar_back_wednesday_close, "late_shift"
    return windows.bar_back_close, "late_shift"


def support_shift(policy: AllocationPolicy) -> tuple[TimeRange, ShiftType]:
    return policy.windows.support, "regular"


def day_shifts(
    day: DayOfWeek,
    working: Mapping[str, Sequence[StaffMember]],
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> dict[str, tuple[TimeRange, ShiftType]]:
    shifts: dict[str, tuple[TimeRange, ShiftType]] = {}
    for member in working.get("head_bartender", []):
        shifts[member.id] = head_shift(day, policy)
    station_staff = [*working.get("senior_bartender", []), *working.get("bartender", [])]
    for position, member in enumerate(station_staff):
        shifts[member.id] = bartender_shift(day, position, policy)
    for position, member in enumerate(working.get("bar_back", [])):
        shifts[member.id] = bar_back_shift(day, position, policy)
    for member in working.get("support", []):
        shifts[member.id] = support_shift(policy)
    return shifts


def day_stations(
    working: Mapping[str, Sequence[StaffMember]],
    hints: Mapping[str, Area] | None = None,
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> dict[str, Station]:
    """Station for every working member of one day.

    ``working`` maps each role to its working members in processing order.
    ``hints`` pins a member to an area; the slot is still derived from the
    member's position in the cycle for that area, so the result depends only
    on role, area and order.
    """
    hints = hints or {}
    text = policy.responsibilities
    stations: dict[str, Station] = {}

    heads = working.get("head_bartender", [])
    for position, member in enumerate(heads):
        area = hints.get(member.id)
        if area is None and len(heads) >= 2:
            area = "Outdoor" if position == 0 else "Indoor"
        responsibilities = text.head_supervisor.format(area=area.lower()) if area else text.head_solo
        stations[member.id] = Station(kind="supervisor", area=area, responsibilities=responsibilities)

    cycle = SlotCycle({"Indoor": policy.indoor_slots, "Outdoor": policy.outdoor_slots})
    for member in working.get("senior_bartender", []):
        stations[member.id] = _bar_station(hints.get(member.id) or "Indoor", cycle, policy)
    for position, member in enumerate(working.get("bartender", [])):
        default_area: Area = "Outdoor" if position % 2 == 1 else "Indoor"
        stations[member.id] = _bar_station(hints.get(member.id) or default_area, cycle, policy)

    bar_back_taken = {"Indoor": 0, "Outdoor": 0}
    for position, member in enumerate(working.get("bar_back", [])):
        area = hints.get(member.id) or ("Outdoor" if position == 0 else "Indoor")
        bar_back_taken[area] += 1
        slot = bar_back_taken[area]
        responsibilities = text.bar_back_support if area == "Indoor" and slot >= 2 else text.bar_back
        stations[member.id] = Station(kind="bar_back", area=area, slot=slot, responsibilities=responsibilities)

    for member in working.get("support", []):
        stations[member.id] = Station(kind="support", area=hints.get(member.id), responsibilities=text.support)

    return stations


def _bar_station(area: Area, cycle: SlotCycle, policy: AllocationPolicy) -> Station:
    slot = cycle.take(area)
    kind = "garnishing" if area == "Indoor" and slot == policy.garnishing_slot else "station"
    return Station(kind=kind, area=area, slot=slot, responsibilities=policy.responsibilities.station)


def assign_shifts(
    groups: Mapping[str, Sequence[StaffMember]],
    days_off: Mapping[str, Sequence[str]],
    rng: random.Random,
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> AllocationPlan:
    plan = AllocationPlan()
    for day in DAYS_OF_WEEK:
        working: dict[str, list[StaffMember]] = {}
        for role in ROLE_ORDER:
            members = groups.get(role, [])
            on_shift = []
            for member in members:
                if day in days_off.get(member.id, ()):
                    plan.set_cell(member.id, day, OffCell())
                else:
                    on_shift.append(member)
            rng.shuffle(on_shift)
            working[role] = on_shift

        shifts = day_shifts(day, working, policy)
        stations = day_stations(working, policy=policy)
        for staff_id, (time_range, shift_type) in shifts.items():
            plan.set_cell(
                staff_id,
                day,
                WorkingCell(time_range=time_range.model_copy(), shift_type=shift_type, station=stations[staff_id]),
            )
    return plan


def normalize_stations(
    plan: AllocationPlan,
    roster: Sequence[StaffMember],
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> AllocationPlan:
    normalized = plan.model_copy(deep=True)
    groups = group_by_role(list(roster))
    for day in DAYS_OF_WEEK:
        working = {role: [m for m in groups[role] if normalized.is_working(m.id, day)] for role in ROLE_ORDER}
        hints: dict[str, Area] = {}
        for members in working.values():
            for member in members:
                station = normalized.cell(member.id, day).station
                if station is not None and station.area is not None:
                    hints[member.id] = station.area
        for staff_id, station in day_stations(working, hints, policy).items():
            cell = normalized.cell(staff_id, day)
            normalized.set_cell(staff_id, day, cell.model_copy(update={"station": station}))
    return normalized


def render_station(station: Station | None) -> str:
    if station is None:
        return ""
    area = station.area
    if station.kind == "supervisor":
        return f"Head - {area} Supervisor: {station.responsibilities}" if area else f"Head - Supervising: {station.responsibilities}"
    if station.kind == "garnishing":
        return f"{area} - Garnishing Station {station.slot}: {station.responsibilities}"
    if station.kind == "station":
        return f"{area} - Station {station.slot}: {station.responsibilities}"
    if station.kind == "bar_back":
        if area == "Indoor" and (station.slot or 1) >= 2:
            return f"Bar Back - Indoor Support: {station.responsibilities}"
        return f"Bar Back - {area}: {station.responsibilities}" if area else f"Bar Back: {station.responsibilities}"
    return f"Support - {area}: {station.responsibilities}" if area else f"Support: {station.responsibilities}"
