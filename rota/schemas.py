from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field, field_validator

Role = Literal["head_bartender", "senior_bartender", "bartender", "bar_back", "support"]
DayOfWeek = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
ShiftType = Literal["opening", "closing", "pickup", "brunch", "early_shift", "late_shift", "regular"]
Area = Literal["Indoor", "Outdoor"]
StationKind = Literal["supervisor", "station", "garnishing", "bar_back", "support"]
WarningType = Literal[
    "coverage_floor",
    "max_off",
    "pair_overlap",
    "busy_day_rest",
    "forced_day_off",
    "short_days_off",
    "days_off_bound",
    "missing_cell",
    "bar_back_gap",
    "support_gap",
]

DAYS_OF_WEEK: list[DayOfWeek] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
ROLE_ORDER: tuple[Role, ...] = ("head_bartender", "senior_bartender", "bartender", "bar_back", "support")
BARTENDER_ROLES: frozenset[str] = frozenset({"head_bartender", "senior_bartender", "bartender"})
ROLE_LABELS: dict[str, str] = {
    "head_bartender": "Head Bartender",
    "senior_bartender": "Senior Bartender",
    "bartender": "Bartender",
    "bar_back": "Bar Back",
    "support": "Support",
}


def _time_to_minutes(value: str) -> int:
    hh, mm = value.split(":")
    return int(hh) * 60 + int(mm)


def is_bartender_class(role: str) -> bool:
    return role in BARTENDER_ROLES


class BreakTimings(BaseModel):
    first_wave_start: str = "17:30"
    first_wave_end: str = "18:30"
    second_wave_start: str = "18:30"


class StaffMember(BaseModel):
    id: str
    name: str
    role: Role
    break_timings: BreakTimings | None = None


class TimeRange(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        try:
            minutes = _time_to_minutes(value)
        except ValueError as exc:
            raise ValueError(f"Expected HH:MM, got {value!r}") from exc
        if not 0 <= minutes < 24 * 60:
            raise ValueError(f"Expected HH:MM, got {value!r}")
        return value

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"

    @property
    def hours(self) -> float:
        # Ranges ending at or before their start run past midnight.
        span = (_time_to_minutes(self.end) - _time_to_minutes(self.start)) % (24 * 60)
        return span / 60.0


class Station(BaseModel):
    kind: StationKind
    area: Area | None = None
    slot: int | None = None
    responsibilities: str = ""


class OffCell(BaseModel):
    status: Literal["off"] = "off"


class WorkingCell(BaseModel):
    status: Literal["working"] = "working"
    time_range: TimeRange
    shift_type: ShiftType
    station: Station | None = None


ScheduleCell = Annotated[Union[OffCell, WorkingCell], Field(discriminator="status")]


class AllocationPlan(BaseModel):
    cells: dict[str, dict[DayOfWeek, ScheduleCell]] = Field(default_factory=dict)

    def cell(self, staff_id: str, day: DayOfWeek) -> OffCell | WorkingCell | None:
        return self.cells.get(staff_id, {}).get(day)

    def set_cell(self, staff_id: str, day: DayOfWeek, cell: OffCell | WorkingCell) -> None:
        self.cells.setdefault(staff_id, {})[day] = cell

    def is_off(self, staff_id: str, day: DayOfWeek) -> bool:
        return isinstance(self.cell(staff_id, day), OffCell)

    def is_working(self, staff_id: str, day: DayOfWeek) -> bool:
        return isinstance(self.cell(staff_id, day), WorkingCell)

    def days_off(self, staff_id: str) -> list[DayOfWeek]:
        return [day for day in DAYS_OF_WEEK if self.is_off(staff_id, day)]

    def merged_over(self, existing: AllocationPlan | None) -> AllocationPlan:
        """Return a copy of ``existing`` with every cell of this plan written over it.

        Cells the generator did not touch (staff no longer on the roster, days it
        never produced) keep their manually edited value.
        """
        merged = existing.model_copy(deep=True) if existing is not None else AllocationPlan()
        for staff_id, days in self.cells.items():
            for day, cell in days.items():
                merged.set_cell(staff_id, day, cell.model_copy(deep=True))
        return merged


class DaysOffTarget(BaseModel):
    staff_id: str
    target: int = Field(ge=0, le=2)
    working_all_week: bool = False


class AllocationWarning(BaseModel):
    type: WarningType
    detail: str
    day: DayOfWeek | None = None
    staff_id: str | None = None

    @computed_field
    @property
    def message(self) -> str:
        return f"{self.day}: {self.detail}" if self.day else self.detail


def busy_days_from_events(events: dict[str, str]) -> set[DayOfWeek]:
    return {day for day in DAYS_OF_WEEK if (events.get(day) or "").strip()}


def group_by_role(roster: list[StaffMember]) -> dict[str, list[StaffMember]]:
    groups: dict[str, list[StaffMember]] = {role: [] for role in ROLE_ORDER}
    for member in roster:
        groups[member.role].append(member)
    return groups
