from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from rota.schemas import DAYS_OF_WEEK, DayOfWeek, TimeRange


def _window(start: str, end: str) -> TimeRange:
    return TimeRange(start=start, end=end)


class ShiftWindows(BaseModel):
    early: TimeRange = Field(default_factory=lambda: _window("16:00", "01:00"))
    late: TimeRange = Field(default_factory=lambda: _window("17:00", "03:00"))
    bar_back_pickup: TimeRange = Field(default_factory=lambda: _window("12:00", "21:00"))
    bar_back_brunch: TimeRange = Field(default_factory=lambda: _window("11:00", "20:00"))
    bar_back_monday_opening: TimeRange = Field(default_factory=lambda: _window("14:00", "23:00"))
    bar_back_opening: TimeRange = Field(default_factory=lambda: _window("15:00", "00:00"))
    bar_back_wednesday_close: TimeRange = Field(default_factory=lambda: _window("15:00", "03:00"))
    bar_back_close: TimeRange = Field(default_factory=lambda: _window("17:00", "03:00"))
    support: TimeRange = Field(default_factory=lambda: _window("15:00", "01:00"))


class Responsibilities(BaseModel):
    head_supervisor: str = "Observe {area} operations, support where needed"
    head_solo: str = "Observe all operations, support where needed"
    station: str = "Operate station, supervise bar backs, manage closing, refresh & maintain"
    bar_back: str = "Pickups, Refilling, Glassware, Batching, Opening/Closing, Fridges, Stock, Garnish"
    bar_back_support: str = "Pickups, Refilling, Glassware, Batching, help where needed, stock"
    support: str = "Glassware Polishing, General Support"


class AllocationPolicy(BaseModel):
    allowed_rest_days: list[DayOfWeek] = Field(default_factory=lambda: ["Monday", "Wednesday", "Thursday", "Sunday"])
    min_bartenders_working: int = Field(default=3, ge=0)
    max_bartenders_off: int = Field(default=2, ge=0)
    pickup_days: list[DayOfWeek] = Field(default_factory=lambda: ["Monday", "Wednesday", "Friday"])
    brunch_days: list[DayOfWeek] = Field(default_factory=lambda: ["Saturday"])
    indoor_slots: int = Field(default=3, ge=1)
    outdoor_slots: int = Field(default=2, ge=1)
    garnishing_slot: int = Field(default=3, ge=1)
    support_days_off_odd_week: int = Field(default=1, ge=0, le=2)
    support_days_off_even_week: int = Field(default=0, ge=0, le=2)
    windows: ShiftWindows = Field(default_factory=ShiftWindows)
    responsibilities: Responsibilities = Field(default_factory=Responsibilities)

    @model_validator(mode="after")
    def validate_rest_days(self) -> AllocationPolicy:
        if len(set(self.allowed_rest_days)) != len(self.allowed_rest_days):
            raise ValueError("allowed_rest_days must not repeat a day")
        # Keep rest days in week order so candidate lists do not depend on input order.
        self.allowed_rest_days = [day for day in DAYS_OF_WEEK if day in self.allowed_rest_days]
        return self

    def is_pickup_day(self, day: DayOfWeek) -> bool:
        return day in self.pickup_days

    def is_brunch_day(self, day: DayOfWeek) -> bool:
        return day in self.brunch_days


DEFAULT_POLICY = AllocationPolicy()
