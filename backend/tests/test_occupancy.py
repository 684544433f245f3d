from conftest import make_grid
from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.occupancy import Blocker, OccupancyIndex


def _candidate(**overrides):
    values = {
        "teacher_id": "t1",
        "section_ids": ("s1",),
        "room_id": "r1",
        "day": "monday",
        "start_period": 1,
        "length": 1,
    }
    values.update(overrides)
    return values


def test_committed_range_blocks_every_covered_period():
    index = OccupancyIndex(make_grid(), ConstraintStore())
    index.commit(**_candidate(start_period=2, length=2))

    assert index.check(**_candidate(teacher_id="t2", section_ids=("s2",), start_period=3)) is Blocker.room_busy
    assert index.check(**_candidate(room_id="r2", section_ids=("s2",), start_period=2)) is Blocker.teacher_busy
    assert index.check(**_candidate(teacher_id="t2", room_id="r2", start_period=3)) is Blocker.section_busy
    assert index.is_feasible(**_candidate(start_period=4))
    assert index.is_feasible(**_candidate(day="tuesday", start_period=2))
    assert index.busy_cells() == 2


def test_any_section_of_a_group_blocks_the_group():
    index = OccupancyIndex(make_grid(), ConstraintStore())
    index.commit(**_candidate(section_ids=("s2",)))

    blocker = index.check(**_candidate(teacher_id="t2", room_id="r2", section_ids=("s1", "s2")))

    assert blocker is Blocker.section_busy


def test_blackouts_and_breaks_are_reported():
    constraints = ConstraintStore()
    constraints.block("teacher", "t1", "monday", 1)
    constraints.block("room", "r1", "monday", 2)
    index = OccupancyIndex(make_grid(breaks=(4,)), constraints)

    assert index.check(**_candidate()) is Blocker.teacher_blocked
    assert index.check(**_candidate(start_period=2)) is Blocker.room_blocked
    assert index.check(**_candidate(start_period=3, length=2)) is Blocker.break_period


def test_sessions_without_room_only_check_people():
    index = OccupancyIndex(make_grid(), ConstraintStore())
    index.commit(**_candidate(room_id=None))

    assert index.is_feasible(**_candidate(teacher_id="t2", section_ids=("s2",), room_id=None))
