from __future__ import annotations

import logging
import os
import random
from datetime import date

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from rota import store
from rota.allocator import generate as allocate_week
from rota.allocator import week_parity
from rota.db import get_db
from rota.policy import AllocationPolicy
from rota.schemas import (
    DAYS_OF_WEEK,
    AllocationPlan,
    AllocationWarning,
    DayOfWeek,
    DaysOffTarget,
    StaffMember,
    WorkingCell,
    busy_days_from_events,
    is_bartender_class,
)
from rota.stations import normalize_stations, render_station

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Venue Rota")


@app.middleware("http")
async def disable_cache_for_api(request: Request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, max-age=0, must-revalidate"
        response.headers["Pragma"] = "no-cache"
    return response


def roster_problem(roster: list[StaffMember]) -> str | None:
    if not roster:
        return "Add staff members before generating a schedule"
    if not any(is_bartender_class(member.role) for member in roster):
        return "Roster needs at least one head, senior or regular bartender"
    ids = [member.id for member in roster]
    if len(ids) != len(set(ids)):
        return "Staff ids must be unique"
    return None


class GenerateRequest(BaseModel):
    roster: list[StaffMember]
    prior_week_off_counts: dict[str, int] = Field(default_factory=dict)
    busy_days: list[DayOfWeek] | None = None
    events: dict[DayOfWeek, str] = Field(default_factory=dict)
    week_start: date | None = None
    week_is_odd: bool | None = None
    reroll_token: int | None = Field(default=None, ge=0)
    policy: AllocationPolicy = Field(default_factory=AllocationPolicy)
    existing_plan: AllocationPlan | None = None

    @model_validator(mode="after")
    def validate_request(self) -> GenerateRequest:
        problem = roster_problem(self.roster)
        if problem:
            raise ValueError(problem)
        if self.week_start is None and self.week_is_odd is None:
            raise ValueError("Either week_start or week_is_odd is required")
        if self.week_start is not None and self.week_start.weekday() != 0:
            raise ValueError("week_start must be a Monday")
        return self

    def resolved_busy_days(self) -> set[DayOfWeek]:
        if self.busy_days is not None:
            return set(self.busy_days)
        return busy_days_from_events(self.events)

    def resolved_week_is_odd(self) -> bool:
        if self.week_is_odd is not None:
            return self.week_is_odd
        return week_parity(self.week_start)


class WeekGeneratePayload(BaseModel):
    reroll_token: int | None = Field(default=None, ge=0)
    policy: AllocationPolicy = Field(default_factory=AllocationPolicy)


class GenerateResponse(BaseModel):
    plan: AllocationPlan
    warnings: list[AllocationWarning]
    targets: list[DaysOffTarget]
    busy_days: list[DayOfWeek]
    week_is_odd: bool
    station_labels: dict[str, dict[DayOfWeek, str]]


class WeekEventsPayload(BaseModel):
    events: dict[DayOfWeek, str]


class WeekEventsOut(BaseModel):
    week_start: date
    events: dict[DayOfWeek, str]
    busy_days: list[DayOfWeek]


class ScheduleSavePayload(BaseModel):
    plan: AllocationPlan
    normalize: bool = False


class ScheduleOut(BaseModel):
    week_start: date
    plan: AllocationPlan
    station_labels: dict[str, dict[DayOfWeek, str]]


class NormalizePayload(BaseModel):
    plan: AllocationPlan
    roster: list[StaffMember]
    policy: AllocationPolicy = Field(default_factory=AllocationPolicy)


class NormalizeResponse(BaseModel):
    plan: AllocationPlan
    station_labels: dict[str, dict[DayOfWeek, str]]


def ensure_week_start(week_start: date) -> date:
    if week_start.weekday() != 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="week_start must be a Monday")
    return week_start


def station_labels(plan: AllocationPlan) -> dict[str, dict[DayOfWeek, str]]:
    labels: dict[str, dict[DayOfWeek, str]] = {}
    for staff_id, days in plan.cells.items():
        labels[staff_id] = {
            day: render_station(cell.station) if isinstance(cell, WorkingCell) else store.OFF_LABEL
            for day, cell in days.items()
        }
    return labels


def _sorted_days(days: set[str]) -> list[DayOfWeek]:
    return [day for day in DAYS_OF_WEEK if day in days]


def _run_generation(
    roster: list[StaffMember],
    prior_week_off_counts: dict[str, int],
    busy_days: set[DayOfWeek],
    week_is_odd: bool,
    reroll_token: int | None,
    policy: AllocationPolicy,
    existing_plan: AllocationPlan | None,
) -> GenerateResponse:
    rng = random.Random(reroll_token) if reroll_token is not None else random.Random()
    result = allocate_week(roster, prior_week_off_counts, busy_days, week_is_odd, rng=rng, policy=policy)
    plan = result.plan.merged_over(existing_plan)
    return GenerateResponse(
        plan=plan,
        warnings=result.warnings,
        targets=[result.targets[member.id] for member in roster],
        busy_days=_sorted_days(busy_days),
        week_is_odd=week_is_odd,
        station_labels=station_labels(plan),
    )


@app.get("/health")
def health() -> dict[str, bool | str]:
    return {"ok": True, "env": os.getenv("ENVIRONMENT", "local")}


@app.post("/generate", response_model=GenerateResponse)
def generate(payload: GenerateRequest) -> GenerateResponse:
    return _run_generation(
        payload.roster,
        payload.prior_week_off_counts,
        payload.resolved_busy_days(),
        payload.resolved_week_is_odd(),
        payload.reroll_token,
        payload.policy,
        payload.existing_plan,
    )


@app.post("/api/normalize-stations", response_model=NormalizeResponse)
def normalize(payload: NormalizePayload) -> NormalizeResponse:
    plan = normalize_stations(payload.plan, payload.roster, payload.policy)
    return NormalizeResponse(plan=plan, station_labels=station_labels(plan))


@app.get("/api/staff", response_model=list[StaffMember])
def get_staff(db: Session = Depends(get_db)) -> list[StaffMember]:
    return store.get_roster(db)


@app.put("/api/staff", response_model=list[StaffMember])
def put_staff(
    staff: list[StaffMember] = Body(...),
    db: Session = Depends(get_db),
) -> list[StaffMember]:
    staff_ids = [member.id for member in staff]
    if len(staff_ids) != len(set(staff_ids)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Staff ids must be unique")
    return store.replace_roster(db, staff)


@app.get("/api/weeks/{week_start}/events", response_model=WeekEventsOut)
def get_events(week_start: date, db: Session = Depends(get_db)) -> WeekEventsOut:
    ensure_week_start(week_start)
    events = store.get_week_events(db, week_start)
    return WeekEventsOut(week_start=week_start, events=events, busy_days=_sorted_days(busy_days_from_events(events)))


@app.put("/api/weeks/{week_start}/events", response_model=WeekEventsOut)
def put_events(week_start: date, payload: WeekEventsPayload, db: Session = Depends(get_db)) -> WeekEventsOut:
    ensure_week_start(week_start)
    events = store.replace_week_events(db, week_start, dict(payload.events))
    return WeekEventsOut(week_start=week_start, events=events, busy_days=_sorted_days(busy_days_from_events(events)))


@app.post("/api/weeks/{week_start}/generate", response_model=GenerateResponse)
def generate_week(
    week_start: date,
    payload: WeekGeneratePayload | None = None,
    db: Session = Depends(get_db),
) -> GenerateResponse:
    ensure_week_start(week_start)
    payload = payload or WeekGeneratePayload()
    roster = store.get_roster(db)
    problem = roster_problem(roster)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)
    logger.info("Generating week of %s for %d staff", week_start.isoformat(), len(roster))
    return _run_generation(
        roster,
        store.get_prior_week_off_counts(db, week_start),
        store.get_busy_days(db, week_start),
        week_parity(week_start),
        payload.reroll_token,
        payload.policy,
        store.load_plan(db, week_start),
    )


@app.get("/api/weeks/{week_start}/schedule", response_model=ScheduleOut)
def get_week_schedule(week_start: date, db: Session = Depends(get_db)) -> ScheduleOut:
    ensure_week_start(week_start)
    plan = store.load_plan(db, week_start)
    if not plan.cells:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No saved schedule for this week")
    return ScheduleOut(week_start=week_start, plan=plan, station_labels=station_labels(plan))


@app.put("/api/weeks/{week_start}/schedule")
def put_week_schedule(
    week_start: date,
    payload: ScheduleSavePayload,
    db: Session = Depends(get_db),
) -> dict[str, int | bool]:
    ensure_week_start(week_start)
    plan = payload.plan
    if payload.normalize:
        plan = normalize_stations(plan, store.get_roster(db))
    saved = store.save_plan(db, week_start, plan)
    return {"ok": True, "saved": saved}
