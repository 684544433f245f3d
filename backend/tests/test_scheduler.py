from itertools import combinations

import pytest

from conftest import WEEKDAYS, make_assignment, make_grid, make_scheduler
from timetabler.core.exceptions import SchedulerError
from timetabler.services.catalog import RoomSpec, SectionSpec
from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.diagnostics import ReasonCode


def _cells(session):
    return {(session.day, period) for period in range(session.start_period, session.end_period + 1)}


def _assert_no_double_booking(placed):
    for first, second in combinations(placed, 2):
        shared = _cells(first) & _cells(second)
        if not shared:
            continue
        assert first.teacher_id != second.teacher_id
        assert not set(first.section_ids) & set(second.section_ids)
        if first.room_id is not None and second.room_id is not None:
            assert first.room_id != second.room_id


def test_three_sessions_of_one_assignment_are_all_placed():
    scheduler = make_scheduler([make_assignment(sessions_per_week=3)])

    result = scheduler.run()

    assert len(result.placed) == 3
    assert result.unplaced == []
    assert [(item.day, item.start_period) for item in result.placed] == [
        ("monday", 1),
        ("monday", 2),
        ("monday", 3),
    ]
    assert all(item.room_id == "r1" for item in result.placed)
    assert len({(item.day, item.start_period) for item in result.placed}) == 3


def test_fully_blocked_teacher_leaves_every_session_unassigned():
    constraints = ConstraintStore()
    for day in WEEKDAYS:
        for period in range(1, 7):
            constraints.block("teacher", "t1", day, period)
    scheduler = make_scheduler([make_assignment(sessions_per_week=3)], constraints=constraints)

    result = scheduler.run()

    assert result.placed == []
    assert len(result.unplaced) == 3
    for session in result.unplaced:
        assert ReasonCode.teacher_unavailable in session.reason_codes
        assert any("Teacher t1 unavailable every remaining slot" in reason for reason in session.reasons)
        assert "Relax availability blackouts for the teacher" in session.suggested_fixes


def test_two_period_sessions_never_cross_the_break():
    grid = make_grid(periods_per_day=6, breaks=(3,))
    scheduler = make_scheduler([make_assignment(sessions_per_week=4, session_length=2)], grid=grid)

    result = scheduler.run()

    assert len(result.placed) == 4
    assert {item.start_period for item in result.placed} <= {1, 4, 5}
    assert all(3 not in range(item.start_period, item.end_period + 1) for item in result.placed)
    _assert_no_double_booking(result.placed)


def test_contended_inputs_produce_no_double_booking_and_full_accounting():
    assignments = [
        make_assignment("a1", sequence=1, teacher_id="t1", section_ids=("s1",), sessions_per_week=6),
        make_assignment("a2", sequence=2, teacher_id="t2", section_ids=("s1", "s2"), sessions_per_week=5, session_length=2),
        make_assignment("a3", sequence=3, teacher_id="t1", section_ids=("s2",), sessions_per_week=4),
        make_assignment("a4", sequence=4, teacher_id="t3", section_ids=("s3",), sessions_per_week=8, same_daily_pattern=True),
        make_assignment("a5", sequence=5, teacher_id="t3", section_ids=("s1",), sessions_per_week=2, fixed_day="monday", fixed_period=1),
    ]
    rooms = [RoomSpec(id="r1", name="Room 101", capacity=70), RoomSpec(id="r2", name="Room 102", capacity=70)]
    scheduler = make_scheduler(assignments, grid=make_grid(periods_per_day=4, breaks=(3,)), rooms=rooms)

    result = scheduler.run()

    assert result.total_sessions == sum(item.sessions_per_week for item in assignments)
    assert len(result.placed) + len(result.unplaced) == result.total_sessions
    _assert_no_double_booking(result.placed)
    keys = [(item.assignment_id, item.session_index) for item in result.placed + result.unplaced]
    assert len(keys) == len(set(keys))


def test_identical_inputs_give_identical_schedules():
    def build():
        return make_scheduler(
            [
                make_assignment("a1", sequence=1, sessions_per_week=4, session_length=2),
                make_assignment("a2", sequence=2, teacher_id="t2", sessions_per_week=5),
                make_assignment("a3", sequence=3, teacher_id="t3", section_ids=("s2",), same_daily_pattern=True, sessions_per_week=3),
            ],
            grid=make_grid(breaks=(4,)),
        )

    first = build().run()
    second = build().run()

    assert first.placed == second.placed
    assert first.unplaced == second.unplaced
    assert first.log == second.log


def test_pinned_session_lands_on_its_pin():
    assignment = make_assignment(sessions_per_week=3, fixed_day="wednesday", fixed_period=4)

    result = make_scheduler([assignment]).run()

    pinned = [item for item in result.placed if item.session_index == 0]
    assert [(item.day, item.start_period) for item in pinned] == [("wednesday", 4)]
    assert len(result.placed) == 3


def test_pinned_session_is_honored_outside_allowed_days():
    assignment = make_assignment(fixed_day="friday", fixed_period=2, allowed_days=("monday",))

    result = make_scheduler([assignment]).run()

    assert [(item.day, item.start_period) for item in result.placed] == [("friday", 2)]


def test_taken_pin_is_reported_not_moved():
    assignments = [
        make_assignment("a1", sequence=1, fixed_day="monday", fixed_period=1),
        make_assignment("a2", sequence=2, section_ids=("s2",), fixed_day="monday", fixed_period=1),
    ]

    result = make_scheduler(assignments).run()

    assert [item.assignment_id for item in result.placed] == ["a1"]
    [unplaced] = result.unplaced
    assert unplaced.assignment_id == "a2"
    assert ReasonCode.pinned_slot_taken in unplaced.reason_codes
    assert "teacher already teaching" in unplaced.reasons[0]
    assert "Move or remove the fixed day/period pin" in unplaced.suggested_fixes


def test_pin_outside_the_grid_is_unassigned():
    result = make_scheduler([make_assignment(fixed_day="sunday", fixed_period=1)]).run()

    assert result.placed == []
    assert result.unplaced[0].reason_codes == (ReasonCode.pinned_slot_invalid,)
    assert any("WARNING:" in line and "not an active day" in line for line in result.log)


def test_same_daily_pattern_uses_one_start_period_on_distinct_days():
    assignments = [
        make_assignment("busy", sequence=1, section_ids=("s9",), fixed_day="monday", fixed_period=1),
        make_assignment("pattern", sequence=2, sessions_per_week=3, same_daily_pattern=True),
    ]

    result = make_scheduler(assignments).run()

    pattern = [item for item in result.placed if item.assignment_id == "pattern"]
    assert len(pattern) == 3
    assert {item.start_period for item in pattern} == {1}
    assert [item.day for item in pattern] == ["tuesday", "wednesday", "thursday"]


def test_same_daily_pattern_follows_the_pin():
    assignment = make_assignment(sessions_per_week=3, same_daily_pattern=True, fixed_day="wednesday", fixed_period=2)

    result = make_scheduler([assignment]).run()

    assert len(result.placed) == 3
    assert {item.start_period for item in result.placed} == {2}
    assert len({item.day for item in result.placed}) == 3


def test_same_daily_pattern_reports_insufficient_days():
    assignment = make_assignment(sessions_per_week=3, same_daily_pattern=True, allowed_days=("monday", "tuesday"))

    result = make_scheduler([assignment]).run()

    assert len(result.placed) == 2
    assert len({item.day for item in result.placed}) == 2
    [unplaced] = result.unplaced
    assert unplaced.reason_codes == (ReasonCode.pattern_insufficient_days,)
    assert unplaced.reasons[0].startswith("Insufficient days for same-pattern requirement")
    assert "Disable the same daily pattern" in unplaced.suggested_fixes


def test_fixed_room_is_the_only_room_used():
    rooms = [RoomSpec(id="r1", name="Room 101", capacity=40), RoomSpec(id="r2", name="Lab 1", capacity=40)]
    constraints = ConstraintStore()
    for period in range(1, 7):
        constraints.block("room", "r2", "monday", period)
    assignment = make_assignment(preferred_room_ids=("r2",), room_fixed=True)

    result = make_scheduler([assignment], rooms=rooms, constraints=constraints).run()

    [placed] = result.placed
    assert (placed.day, placed.start_period, placed.room_id) == ("tuesday", 1, "r2")


def test_fixed_room_that_is_inactive_leaves_sessions_unassigned():
    rooms = [RoomSpec(id="r1", name="Room 101", capacity=40), RoomSpec(id="r2", name="Lab 1", capacity=40, is_active=False)]
    assignment = make_assignment(sessions_per_week=2, preferred_room_ids=("r2",), room_fixed=True)

    result = make_scheduler([assignment], rooms=rooms).run()

    assert result.placed == []
    assert all(item.reason_codes == (ReasonCode.fixed_room_inactive,) for item in result.unplaced)
    assert sum("fixed room r2 is inactive or missing" in line for line in result.log) == 1


def test_fully_booked_fixed_room_is_reported():
    rooms = [RoomSpec(id="r1", name="Room 101", capacity=40), RoomSpec(id="r2", name="Lab 1", capacity=40)]
    constraints = ConstraintStore()
    for day in WEEKDAYS:
        for period in range(1, 7):
            constraints.block("room", "r2", day, period)
    assignment = make_assignment(preferred_room_ids=("r2",), room_fixed=True)

    result = make_scheduler([assignment], rooms=rooms, constraints=constraints).run()

    [unplaced] = result.unplaced
    assert ReasonCode.fixed_room_busy in unplaced.reason_codes
    assert "No room free for required duration" in unplaced.reasons[0]
    assert "Relax room-fixed so other rooms can be used" in unplaced.suggested_fixes


def test_preferred_rooms_come_before_smaller_rooms():
    rooms = [
        RoomSpec(id="big", name="Hall", capacity=100),
        RoomSpec(id="small", name="Room 5", capacity=35),
        RoomSpec(id="tiny", name="Room 1", capacity=10),
    ]

    preferred = make_scheduler([make_assignment(preferred_room_ids=("big",))], rooms=rooms).run()
    fallback = make_scheduler([make_assignment()], rooms=rooms).run()

    assert preferred.placed[0].room_id == "big"
    assert fallback.placed[0].room_id == "small"


def test_combined_sections_need_a_room_for_their_total_strength():
    rooms = [RoomSpec(id="r1", name="Room 101", capacity=40), RoomSpec(id="r2", name="Hall", capacity=70)]
    sections = [SectionSpec(id="s1", name="S1", strength=30), SectionSpec(id="s2", name="S2", strength=30)]
    assignments = [
        make_assignment("joint", sequence=1, section_ids=("s1", "s2")),
        make_assignment("solo", sequence=2, teacher_id="t2", section_ids=("s2",)),
    ]

    result = make_scheduler(assignments, rooms=rooms, sections=sections).run()

    placed = {item.assignment_id: item for item in result.placed}
    assert placed["joint"].room_id == "r2"
    assert (placed["solo"].day, placed["solo"].start_period) != (placed["joint"].day, placed["joint"].start_period)


def test_no_room_large_enough_is_reported():
    sections = [SectionSpec(id="s1", name="S1", strength=30), SectionSpec(id="s2", name="S2", strength=30)]
    assignment = make_assignment(section_ids=("s1", "s2"))

    result = make_scheduler([assignment], sections=sections).run()

    [unplaced] = result.unplaced
    assert unplaced.reason_codes == (ReasonCode.no_room_capacity,)
    assert unplaced.reasons[0] == "No active room has capacity for 60 student(s)"


def test_sessions_are_placed_without_room_when_none_exist():
    result = make_scheduler([make_assignment(sessions_per_week=2)], rooms=[]).run()

    assert len(result.placed) == 2
    assert all(item.room_id is None for item in result.placed)
    assert any("no active rooms exist" in line for line in result.log)


def test_allowed_days_restrict_placement():
    result = make_scheduler([make_assignment(sessions_per_week=2, allowed_days=("thursday",))]).run()

    assert {item.day for item in result.placed} == {"thursday"}


def test_overlong_session_does_not_fit():
    result = make_scheduler([make_assignment(session_length=7)]).run()

    [unplaced] = result.unplaced
    assert unplaced.reason_codes == (ReasonCode.length_does_not_fit,)
    assert "Split long sessions into shorter ones" in unplaced.suggested_fixes


def test_run_log_summarizes_the_run():
    result = make_scheduler([make_assignment(sessions_per_week=2)]).run()

    assert result.log[0].startswith("Expanded 1 assignment(s) into 2 session request(s)")
    assert result.log[-1] == "Placed 2 of 2 session(s); 0 unassigned"


@pytest.mark.parametrize(
    "assignments, sections",
    [
        ([], None),
        ([make_assignment(section_ids=())], []),
        ([make_assignment(section_ids=("ghost",))], [SectionSpec(id="s1", name="S1")]),
        ([make_assignment()], [SectionSpec(id="s1", name="S1", is_active=False)]),
        ([make_assignment(sessions_per_week=0)], None),
        ([make_assignment(session_length=0)], None),
    ],
)
def test_structurally_invalid_inputs_raise(assignments, sections):
    with pytest.raises(SchedulerError):
        make_scheduler(assignments, sections=sections)
