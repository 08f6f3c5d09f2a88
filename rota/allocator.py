from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import TypeVar

from rota.policy import DEFAULT_POLICY, AllocationPolicy
from rota.schemas import (
    DAYS_OF_WEEK,
    ROLE_ORDER,
    AllocationPlan,
    AllocationWarning,
    DayOfWeek,
    DaysOffTarget,
    StaffMember,
    group_by_role,
    is_bartender_class,
)
from rota.stations import assign_shifts
from rota.validation import validate_plan

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CoverageCounters:
    """Bartender-class staff working and off per day, threaded through day-off selection."""

    working: dict[str, int]
    off: dict[str, int]

    @classmethod
    def for_roster(cls, roster: Iterable[StaffMember]) -> CoverageCounters:
        total = sum(1 for member in roster if is_bartender_class(member.role))
        return cls(working={day: total for day in DAYS_OF_WEEK}, off={day: 0 for day in DAYS_OF_WEEK})

    def can_rest(self, day: DayOfWeek, policy: AllocationPolicy) -> bool:
        keeps_floor = self.working[day] - 1 >= policy.min_bartenders_working
        under_max_off = self.off[day] < policy.max_bartenders_off
        return keeps_floor and under_max_off

    def with_rest(self, day: DayOfWeek) -> CoverageCounters:
        working = dict(self.working)
        off = dict(self.off)
        working[day] -= 1
        off[day] += 1
        return CoverageCounters(working=working, off=off)


@dataclass
class AllocationResult:
    plan: AllocationPlan
    warnings: list[AllocationWarning] = field(default_factory=list)
    targets: dict[str, DaysOffTarget] = field(default_factory=dict)


def week_parity(week_start: date) -> bool:
    return week_start.isocalendar()[1] % 2 == 1


def shuffled(items: Iterable[T], rng: random.Random) -> list[T]:
    out = list(items)
    rng.shuffle(out)
    return out


def plan_days_off(
    groups: Mapping[str, Sequence[StaffMember]],
    prior_week_off_counts: Mapping[str, int],
    week_is_odd: bool,
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> dict[str, DaysOffTarget]:
    targets: dict[str, DaysOffTarget] = {}
    for role in ROLE_ORDER:
        for index, member in enumerate(groups.get(role, [])):
            if role == "support":
                # Support works 10h shifts and rests roughly twice a month.
                target = policy.support_days_off_odd_week if week_is_odd else policy.support_days_off_even_week
                targets[member.id] = DaysOffTarget(staff_id=member.id, target=target, working_all_week=target == 0)
                continue
            prior = prior_week_off_counts.get(member.id, 0)
            if prior >= 2:
                target = 1
            elif prior == 1:
                target = 2
            else:
                target = 2 if index % 2 == 0 else 1
            targets[member.id] = DaysOffTarget(staff_id=member.id, target=target)
            logger.debug("%s: %s day(s) off last week -> %s this week", member.name, prior, target)
    return targets


def _fallback_day(
    busy_days: set[str],
    partner_days: set[str],
    counters: CoverageCounters,
    rng: random.Random,
    policy: AllocationPolicy,
) -> DayOfWeek | None:
    pool = [day for day in policy.allowed_rest_days if day not in busy_days]
    if not pool:
        pool = list(policy.allowed_rest_days)
    if not pool:
        return None
    # Pair exclusivity outranks the coverage floor; among equals take the day with the fewest bartenders off.
    ranked = sorted(shuffled(pool, rng), key=lambda day: (day in partner_days, counters.off[day]))
    return ranked[0]


def select_days_off(
    group: Sequence[StaffMember],
    targets: Mapping[str, DaysOffTarget],
    busy_days: Iterable[str],
    counters: CoverageCounters,
    rng: random.Random,
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> tuple[dict[str, list[DayOfWeek]], CoverageCounters, list[AllocationWarning]]:
    busy = set(busy_days)
    pair_group = len(group) == 2
    rest_days = [day for day in policy.allowed_rest_days if day not in busy]
    chosen: dict[str, list[DayOfWeek]] = {}
    warnings: list[AllocationWarning] = []

    for member in group:
        target = targets[member.id].target
        if target == 0:
            chosen[member.id] = []
            logger.debug("%s works all week", member.name)
            continue

        bartender = is_bartender_class(member.role)
        partner_days = {day for days in chosen.values() for day in days} if pair_group else set()
        candidates = [
            day
            for day in rest_days
            if (not bartender or counters.can_rest(day, policy)) and day not in partner_days
        ]
        candidates = shuffled(candidates, rng)

        if candidates:
            days = candidates[:target]
            if len(days) < target:
                warnings.append(
                    AllocationWarning(
                        type="short_days_off",
                        staff_id=member.id,
                        detail=f"{member.name} gets {len(days)} of {target} day(s) off due to staffing constraints",
                    )
                )
        else:
            forced = _fallback_day(busy, partner_days, counters, rng, policy)
            days = [forced] if forced is not None else []
            detail = (
                f"{member.name}: no rest day passes staffing constraints, forcing {forced} off"
                if forced is not None
                else f"{member.name}: no rest day is configured, no day off assigned"
            )
            logger.warning(detail)
            warnings.append(AllocationWarning(type="forced_day_off", day=forced, staff_id=member.id, detail=detail))

        if bartender:
            for day in days:
                counters = counters.with_rest(day)
        chosen[member.id] = days
        logger.debug("%s off on %s", member.name, ", ".join(days) or "no days")

    return chosen, counters, warnings


def generate(
    roster: Sequence[StaffMember],
    prior_week_off_counts: Mapping[str, int],
    busy_days: Iterable[str],
    week_is_odd: bool,
    rng: random.Random | None = None,
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> AllocationResult:
    rng = rng if rng is not None else random.Random()
    busy = set(busy_days)
    groups = {role: shuffled(members, rng) for role, members in group_by_role(list(roster)).items()}
    for role in ROLE_ORDER:
        logger.debug("%s order: %s", role, ", ".join(member.name for member in groups[role]))

    targets = plan_days_off(groups, prior_week_off_counts, week_is_odd, policy)
    counters = CoverageCounters.for_roster(roster)
    days_off: dict[str, list[DayOfWeek]] = {}
    warnings: list[AllocationWarning] = []
    for role in ROLE_ORDER:
        chosen, counters, role_warnings = select_days_off(groups[role], targets, busy, counters, rng, policy)
        days_off.update(chosen)
        warnings.extend(role_warnings)

    plan = assign_shifts(groups, days_off, rng, policy)
    warnings.extend(validate_plan(plan, roster, busy, policy))
    logger.info(
        "Generated week for %d staff with %d warning(s); bartenders off per day: %s",
        len(roster),
        len(warnings),
        {day: counters.off[day] for day in policy.allowed_rest_days},
    )
    return AllocationResult(plan=plan, warnings=warnings, targets=targets)
