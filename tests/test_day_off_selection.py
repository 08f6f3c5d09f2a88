import random

from rota.allocator import CoverageCounters, select_days_off
from rota.policy import AllocationPolicy
from rota.schemas import DAYS_OF_WEEK, DaysOffTarget, StaffMember

REST_DAYS = {"Monday", "Wednesday", "Thursday", "Sunday"}


def _staff(staff_id: str, role: str) -> StaffMember:
    return StaffMember(id=staff_id, name=staff_id.title(), role=role)


def _targets(group, target: int) -> dict[str, DaysOffTarget]:
    return {m.id: DaysOffTarget(staff_id=m.id, target=target) for m in group}


def _counters(working: int, **off: int) -> CoverageCounters:
    return CoverageCounters(
        working={day: working - off.get(day, 0) for day in DAYS_OF_WEEK},
        off={day: off.get(day, 0) for day in DAYS_OF_WEEK},
    )


def test_second_senior_never_shares_the_first_seniors_day_off():
    seniors = [_staff("sam", "senior_bartender"), _staff("sue", "senior_bartender")]
    targets = {
        "sam": DaysOffTarget(staff_id="sam", target=1),
        "sue": DaysOffTarget(staff_id="sue", target=2),
    }
    policy = AllocationPolicy(allowed_rest_days=["Wednesday", "Thursday"])
    counters = _counters(10, Thursday=2)

    chosen, after, warnings = select_days_off(seniors, targets, set(), counters, random.Random(1), policy)

    assert chosen["sam"] == ["Wednesday"]
    assert chosen["sue"] == ["Thursday"]
    assert [w.type for w in warnings] == ["forced_day_off"]
    assert after.off["Thursday"] == 3
    assert counters.off["Thursday"] == 2


def test_pair_members_rest_on_different_days():
    for seed in range(20):
        pair = [_staff("a", "bar_back"), _staff("b", "bar_back")]
        chosen, _, _ = select_days_off(pair, _targets(pair, 2), set(), _counters(0), random.Random(seed))

        assert set(chosen["a"]).isdisjoint(chosen["b"])
        assert len(chosen["a"]) == 2
        assert len(chosen["b"]) == 2


def test_coverage_floor_limits_bartenders_off_per_day():
    group = [_staff(f"b{i}", "bartender") for i in range(4)]
    counters = CoverageCounters.for_roster(group)

    chosen, after, warnings = select_days_off(group, _targets(group, 2), set(), counters, random.Random(3))

    assert len(chosen["b0"]) == 2
    assert len(chosen["b1"]) == 2
    assert set(chosen["b0"]).isdisjoint(chosen["b1"])
    assert set(chosen["b0"]) | set(chosen["b1"]) == REST_DAYS
    assert len(chosen["b2"]) == 1
    assert len(chosen["b3"]) == 1
    assert sorted(w.staff_id for w in warnings if w.type == "forced_day_off") == ["b2", "b3"]
    assert sum(after.off.values()) == 6
    assert max(after.off.values()) == 2


def test_overflow_past_max_off_lands_on_least_loaded_days():
    group = [_staff(f"b{i}", "bartender") for i in range(10)]
    counters = CoverageCounters.for_roster(group)

    chosen, after, warnings = select_days_off(group, _targets(group, 1), set(), counters, random.Random(5))

    assert sorted(after.off[day] for day in REST_DAYS) == [2, 2, 3, 3]
    assert sum(len(days) for days in chosen.values()) == 10
    forced = [w for w in warnings if w.type == "forced_day_off"]
    assert len(forced) == 2


def test_non_bartenders_do_not_touch_coverage_counters():
    group = [_staff(f"bb{i}", "bar_back") for i in range(3)]
    counters = _counters(3)

    chosen, after, warnings = select_days_off(group, _targets(group, 2), set(), counters, random.Random(0))

    assert all(len(days) == 2 for days in chosen.values())
    assert after == counters
    assert warnings == []


def test_busy_days_are_never_candidates():
    group = [_staff(f"b{i}", "bartender") for i in range(3)]
    chosen, _, _ = select_days_off(group, _targets(group, 1), {"Monday", "Sunday"}, _counters(12), random.Random(2))

    for days in chosen.values():
        assert set(days) <= {"Wednesday", "Thursday"}


def test_all_rest_days_busy_falls_back_to_a_busy_rest_day():
    member = _staff("solo", "bartender")
    chosen, _, warnings = select_days_off(
        [member], _targets([member], 2), REST_DAYS, _counters(10), random.Random(4)
    )

    assert len(chosen["solo"]) == 1
    assert chosen["solo"][0] in REST_DAYS
    assert warnings[0].type == "forced_day_off"
    assert warnings[0].day == chosen["solo"][0]


def test_fewer_candidates_than_target_gives_short_week():
    member = _staff("solo", "bartender")
    policy = AllocationPolicy(allowed_rest_days=["Monday"])

    chosen, _, warnings = select_days_off([member], _targets([member], 2), set(), _counters(10), random.Random(0), policy)

    assert chosen["solo"] == ["Monday"]
    assert [w.type for w in warnings] == ["short_days_off"]


def test_zero_target_works_all_week():
    member = _staff("sky", "support")
    chosen, _, warnings = select_days_off([member], _targets([member], 0), set(), _counters(5), random.Random(0))

    assert chosen["sky"] == []
    assert warnings == []


def test_no_configured_rest_days_reports_instead_of_raising():
    member = _staff("solo", "bartender")
    policy = AllocationPolicy(allowed_rest_days=[])

    chosen, _, warnings = select_days_off([member], _targets([member], 1), set(), _counters(10), random.Random(0), policy)

    assert chosen["solo"] == []
    assert warnings[0].type == "forced_day_off"
    assert warnings[0].day is None
