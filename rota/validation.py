from __future__ import annotations

from collections.abc import Iterable, Sequence

from rota.policy import DEFAULT_POLICY, AllocationPolicy
from rota.schemas import (
    DAYS_OF_WEEK,
    AllocationPlan,
    AllocationWarning,
    ROLE_LABELS,
    StaffMember,
    group_by_role,
    is_bartender_class,
)


def validate_plan(
    plan: AllocationPlan,
    roster: Sequence[StaffMember],
    busy_days: Iterable[str] = (),
    policy: AllocationPolicy = DEFAULT_POLICY,
) -> list[AllocationWarning]:
    busy = set(busy_days)
    groups = group_by_role(list(roster))
    bartenders = [m for m in roster if is_bartender_class(m.role)]
    pair_groups = [members for members in groups.values() if len(members) == 2]
    warnings: list[AllocationWarning] = []

    for member in roster:
        for day in DAYS_OF_WEEK:
            if plan.cell(member.id, day) is None:
                warnings.append(
                    AllocationWarning(type="missing_cell", day=day, staff_id=member.id, detail=f"{member.name} has no schedule entry")
                )

    for day in DAYS_OF_WEEK:
        working_bartenders = sum(1 for m in bartenders if plan.is_working(m.id, day))
        off_bartenders = sum(1 for m in bartenders if plan.is_off(m.id, day))
        if working_bartenders < policy.min_bartenders_working:
            warnings.append(
                AllocationWarning(
                    type="coverage_floor",
                    day=day,
                    detail=f"Only {working_bartenders} bartenders working, minimum {policy.min_bartenders_working} required",
                )
            )
        if off_bartenders > policy.max_bartenders_off:
            warnings.append(
                AllocationWarning(
                    type="max_off",
                    day=day,
                    detail=f"{off_bartenders} bartenders off, maximum is {policy.max_bartenders_off}",
                )
            )
        for first, second in pair_groups:
            if plan.is_off(first.id, day) and plan.is_off(second.id, day):
                warnings.append(
                    AllocationWarning(
                        type="pair_overlap",
                        day=day,
                        detail=f"{first.name} and {second.name} ({ROLE_LABELS[first.role]}) are both off",
                    )
                )
        if day in busy:
            for member in roster:
                if plan.is_off(member.id, day):
                    warnings.append(
                        AllocationWarning(
                            type="busy_day_rest",
                            day=day,
                            staff_id=member.id,
                            detail=f"{member.name} is off on an event day",
                        )
                    )
        if not any(plan.is_working(m.id, day) for m in groups["bar_back"]):
            warnings.append(AllocationWarning(type="bar_back_gap", day=day, detail="No bar back working, 1+ recommended"))
        if not any(plan.is_working(m.id, day) for m in groups["support"]):
            warnings.append(AllocationWarning(type="support_gap", day=day, detail="No support working, 1+ recommended"))

    for member in roster:
        days_off = len(plan.days_off(member.id))
        if member.role == "support":
            in_bounds = days_off <= 2
        else:
            in_bounds = 1 <= days_off <= 2
        if not in_bounds:
            warnings.append(
                AllocationWarning(
                    type="days_off_bound",
                    staff_id=member.id,
                    detail=f"{member.name} has {days_off} day(s) off this week",
                )
            )

    return warnings
