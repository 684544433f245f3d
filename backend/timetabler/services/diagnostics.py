"""Reasons and remedies for sessions the scheduler could not place.

The scheduler records why every candidate window it tried was rejected in a
``SearchTally``; ``diagnose_exhausted`` turns that tally into the
human-readable reasons stored on an unassigned session, and each reason code
maps to the suggested fixes shown next to it.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from timetabler.services.catalog import PlacementRequest
from timetabler.services.occupancy import Blocker
from timetabler.services.time_grid import TimeGrid


class ReasonCode(str, Enum):
    no_permitted_days = "no_permitted_days"
    allowed_days_exhausted = "allowed_days_exhausted"
    length_does_not_fit = "length_does_not_fit"
    teacher_unavailable = "teacher_unavailable"
    section_committed = "section_committed"
    no_room_free = "no_room_free"
    fixed_room_busy = "fixed_room_busy"
    fixed_room_inactive = "fixed_room_inactive"
    no_room_capacity = "no_room_capacity"
    pinned_slot_invalid = "pinned_slot_invalid"
    pinned_slot_taken = "pinned_slot_taken"
    pattern_insufficient_days = "pattern_insufficient_days"
    pattern_no_common_period = "pattern_no_common_period"


SUGGESTED_FIXES: dict[ReasonCode, tuple[str, ...]] = {
    ReasonCode.no_permitted_days: ("Allow more days for this assignment",),
    ReasonCode.allowed_days_exhausted: ("Allow more days for this assignment",),
    ReasonCode.length_does_not_fit: (
        "Split long sessions into shorter ones",
        "Increase periods per day or move the break period",
    ),
    ReasonCode.teacher_unavailable: (
        "Relax availability blackouts for the teacher",
        "Reduce sessions per week",
    ),
    ReasonCode.section_committed: (
        "Reduce sessions per week",
        "Increase periods per day",
    ),
    ReasonCode.no_room_free: (
        "Add rooms",
        "Relax availability blackouts for rooms",
    ),
    ReasonCode.fixed_room_busy: ("Relax room-fixed so other rooms can be used",),
    ReasonCode.fixed_room_inactive: (
        "Reactivate the fixed room",
        "Relax room-fixed so other rooms can be used",
    ),
    ReasonCode.no_room_capacity: (
        "Add rooms with enough capacity",
        "Split the combined section group",
    ),
    ReasonCode.pinned_slot_invalid: ("Move or remove the fixed day/period pin",),
    ReasonCode.pinned_slot_taken: ("Move or remove the fixed day/period pin",),
    ReasonCode.pattern_insufficient_days: (
        "Allow more days or reduce sessions per week",
        "Disable the same daily pattern",
    ),
    ReasonCode.pattern_no_common_period: (
        "Disable the same daily pattern",
        "Relax availability blackouts",
    ),
}

BLOCKER_LABELS = {
    Blocker.break_period: "crosses a break period",
    Blocker.teacher_blocked: "teacher blocked by availability",
    Blocker.teacher_busy: "teacher already teaching",
    Blocker.section_busy: "section already committed",
    Blocker.room_blocked: "room blocked by availability",
    Blocker.room_busy: "room already in use",
}


@dataclass
class SearchTally:
    days: int = 0
    windows: int = 0
    blockers: Counter[Blocker] = field(default_factory=Counter)

    def record(self, blocker: Blocker) -> None:
        self.windows += 1
        self.blockers[blocker] += 1

    def count(self, *blockers: Blocker) -> int:
        return sum(self.blockers[item] for item in blockers)


@dataclass
class Diagnosis:
    codes: list[ReasonCode] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)

    def add(self, code: ReasonCode, reason: str) -> None:
        self.codes.append(code)
        self.reasons.append(reason)

    @property
    def suggested_fixes(self) -> list[str]:
        fixes: list[str] = []
        for code in self.codes:
            for fix in SUGGESTED_FIXES[code]:
                if fix not in fixes:
                    fixes.append(fix)
        return fixes


def _share(count: int, total: int) -> str:
    if count == total:
        return "every remaining slot"
    return f"{count} of {total} candidate window(s)"


def describe_blocker(blocker: Blocker) -> str:
    return BLOCKER_LABELS[blocker]


def diagnose_exhausted(
    request: PlacementRequest,
    tally: SearchTally,
    *,
    grid: TimeGrid,
    candidate_days: tuple[str, ...],
) -> Diagnosis:
    assignment = request.assignment
    diagnosis = Diagnosis()

    if not candidate_days:
        diagnosis.add(
            ReasonCode.no_permitted_days,
            "No days permitted by allowedDays constraint: "
            f"none of ({', '.join(assignment.allowed_days or ())}) is an active day",
        )
        return diagnosis

    if tally.windows == 0:
        diagnosis.add(
            ReasonCode.length_does_not_fit,
            f"Session length {assignment.session_length} does not fit any break-free window "
            f"of the {grid.periods_per_day}-period day",
        )
        return diagnosis

    teacher = tally.count(Blocker.teacher_blocked, Blocker.teacher_busy)
    if teacher:
        diagnosis.add(
            ReasonCode.teacher_unavailable,
            f"Teacher {assignment.teacher_id} unavailable {_share(teacher, tally.windows)} "
            f"({tally.blockers[Blocker.teacher_blocked]} blocked by availability, "
            f"{tally.blockers[Blocker.teacher_busy]} already teaching)",
        )

    section = tally.count(Blocker.section_busy)
    if section:
        diagnosis.add(
            ReasonCode.section_committed,
            f"Section {'+'.join(assignment.section_ids)} already committed {_share(section, tally.windows)}",
        )

    room = tally.count(Blocker.room_blocked, Blocker.room_busy)
    if room:
        where = "in any remaining slot" if room == tally.windows else f"in {room} of {tally.windows} candidate window(s)"
        reason = (
            f"No room free for required duration ({assignment.session_length} period(s)) {where} "
            f"({tally.blockers[Blocker.room_blocked]} blocked by availability, "
            f"{tally.blockers[Blocker.room_busy]} already in use)"
        )
        if assignment.room_fixed and assignment.preferred_room_ids:
            diagnosis.add(
                ReasonCode.fixed_room_busy,
                f"{reason}; room is fixed to {assignment.preferred_room_ids[0]}",
            )
        else:
            diagnosis.add(ReasonCode.no_room_free, reason)

    if assignment.allowed_days is not None:
        diagnosis.add(
            ReasonCode.allowed_days_exhausted,
            f"No days permitted by allowedDays constraint ({', '.join(candidate_days)}) produced a free slot",
        )
    return diagnosis


def diagnose_pinned(request: PlacementRequest, *, blocker: Blocker | None, valid: bool) -> Diagnosis:
    diagnosis = Diagnosis()
    label = f"{request.day} period {request.start_period}"
    if not valid:
        diagnosis.add(
            ReasonCode.pinned_slot_invalid,
            f"Pinned slot {label} is outside the active grid or cannot hold "
            f"a {request.length}-period session without crossing a break",
        )
        return diagnosis
    detail = describe_blocker(blocker) if blocker is not None else "no room available"
    diagnosis.add(ReasonCode.pinned_slot_taken, f"Pinned slot {label} is not free: {detail}")
    if blocker in (Blocker.teacher_blocked, Blocker.teacher_busy):
        diagnosis.add(
            ReasonCode.teacher_unavailable,
            f"Teacher {request.assignment.teacher_id} unavailable at the pinned slot",
        )
    elif blocker is Blocker.section_busy:
        diagnosis.add(ReasonCode.section_committed, "Section already committed at the pinned slot")
    return diagnosis


def diagnose_pattern_shortfall(request: PlacementRequest, *, needed: int, available: int) -> Diagnosis:
    diagnosis = Diagnosis()
    diagnosis.add(
        ReasonCode.pattern_insufficient_days,
        f"Insufficient days for same-pattern requirement: {needed} session(s) need distinct days, "
        f"only {available} qualify",
    )
    return diagnosis


def diagnose_pattern_period(
    request: PlacementRequest,
    *,
    start_period: int,
    day_blockers: dict[str, Blocker | None],
) -> Diagnosis:
    diagnosis = Diagnosis()
    blocked = ", ".join(
        f"{day}: {describe_blocker(blocker) if blocker is not None else 'no room available'}"
        for day, blocker in day_blockers.items()
    )
    diagnosis.add(
        ReasonCode.pattern_no_common_period,
        f"Same daily pattern fixed at period {start_period} is not free on the remaining days ({blocked})",
    )
    return diagnosis
