from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter

from timetabler.core.exceptions import SchedulerError
from timetabler.services.catalog import (
    AssignmentSpec,
    PlacementRequest,
    RequestKind,
    RoomSpec,
    SectionSpec,
    expand_requests,
)
from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.diagnostics import (
    Diagnosis,
    ReasonCode,
    SearchTally,
    diagnose_exhausted,
    diagnose_pattern_period,
    diagnose_pattern_shortfall,
    diagnose_pinned,
)
from timetabler.services.occupancy import Blocker, OccupancyIndex
from timetabler.services.time_grid import TimeGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedSession:
    assignment_id: str
    session_index: int
    kind: RequestKind
    teacher_id: str
    subject_id: str
    section_ids: tuple[str, ...]
    day: str
    start_period: int
    session_length: int
    room_id: str | None

    @property
    def end_period(self) -> int:
        return self.start_period + self.session_length - 1


@dataclass(frozen=True)
class UnplacedSession:
    assignment_id: str
    session_index: int
    kind: RequestKind
    reasons: tuple[str, ...]
    suggested_fixes: tuple[str, ...]
    reason_codes: tuple[ReasonCode, ...] = ()


@dataclass
class ScheduleResult:
    placed: list[PlacedSession] = field(default_factory=list)
    unplaced: list[UnplacedSession] = field(default_factory=list)
    log: list[str] = field(default_factory=list)

    @property
    def total_sessions(self) -> int:
        return len(self.placed) + len(self.unplaced)


@dataclass(frozen=True)
class RoomPlan:
    room_ids: tuple[str | None, ...]
    failure: Diagnosis | None = None


@dataclass(frozen=True)
class WindowOutcome:
    feasible: bool
    room_id: str | None = None
    blocker: Blocker | None = None


class GreedyScheduler:
    """Single-pass, first-feasible placement of every session of a run.

    Requests are attempted in the order produced by ``expand_requests``; each
    one takes the first (day, start period, room) that passes the exclusivity
    checks and is never revisited. Identical inputs always give identical
    placements.
    """

    def __init__(
        self,
        *,
        grid: TimeGrid,
        constraints: ConstraintStore,
        assignments: list[AssignmentSpec],
        rooms: list[RoomSpec],
        sections: list[SectionSpec],
    ) -> None:
        self.grid = grid
        self.constraints = constraints
        self.assignments = sorted(assignments, key=lambda item: (item.sequence, item.id))
        if not self.assignments:
            raise SchedulerError(message="No active teaching assignments configured for this academic year")
        self.rooms = {room.id: room for room in rooms}
        self.sections = {section.id: section for section in sections}
        self._validate_assignments()

        self.occupancy = OccupancyIndex(grid, constraints)
        self.log: list[str] = []
        self._active_rooms = sorted(
            (room for room in rooms if room.is_active),
            key=lambda room: (room.capacity, room.name, room.id),
        )
        self._room_plans: dict[str, RoomPlan] = {}
        self._anchors: dict[str, tuple[str, int]] = {}

    def _validate_assignments(self) -> None:
        for assignment in self.assignments:
            if not assignment.section_ids:
                raise SchedulerError(
                    message=f"Teaching assignment {assignment.id} has no sections",
                    details={"assignment_id": assignment.id},
                )
            if assignment.sessions_per_week < 1 or assignment.session_length < 1:
                raise SchedulerError(
                    message=(
                        f"Teaching assignment {assignment.id} must have at least one session "
                        "of at least one period"
                    ),
                    details={"assignment_id": assignment.id},
                )
            unknown = [
                section_id
                for section_id in assignment.section_ids
                if section_id not in self.sections or not self.sections[section_id].is_active
            ]
            if unknown:
                raise SchedulerError(
                    message=(
                        f"Teaching assignment {assignment.id} references unknown or inactive "
                        f"section(s): {', '.join(unknown)}"
                    ),
                    details={"assignment_id": assignment.id, "section_ids": unknown},
                )

    def _warn(self, message: str) -> None:
        self.log.append(f"WARNING: {message}")
        logger.warning("Generation warning: %s", message)

    def _room_plan(self, assignment: AssignmentSpec) -> RoomPlan:
        cached = self._room_plans.get(assignment.id)
        if cached is not None:
            return cached

        if assignment.room_fixed and assignment.preferred_room_ids:
            room_id = assignment.preferred_room_ids[0]
            room = self.rooms.get(room_id)
            if room is None or not room.is_active:
                self._warn(f"Assignment {assignment.id}: fixed room {room_id} is inactive or missing")
                failure = Diagnosis()
                failure.add(ReasonCode.fixed_room_inactive, f"Fixed room {room_id} is inactive or missing")
                plan = RoomPlan(room_ids=(), failure=failure)
            else:
                plan = RoomPlan(room_ids=(room_id,))
            self._room_plans[assignment.id] = plan
            return plan

        if assignment.room_fixed:
            self._warn(f"Assignment {assignment.id}: room is fixed but no preferred room is set; any room may be used")

        required = sum(self.sections[section_id].strength for section_id in assignment.section_ids)
        candidates: list[str | None] = []
        for room_id in assignment.preferred_room_ids:
            room = self.rooms.get(room_id)
            if room is None or not room.is_active:
                self._warn(f"Assignment {assignment.id}: preferred room {room_id} is inactive or missing; skipped")
                continue
            if room_id not in candidates:
                candidates.append(room_id)
        for room in self._active_rooms:
            if room.id not in candidates and room.capacity >= required:
                candidates.append(room.id)

        if candidates:
            plan = RoomPlan(room_ids=tuple(candidates))
        elif not self._active_rooms:
            self._warn(f"Assignment {assignment.id}: no active rooms exist; sessions are placed without a room")
            plan = RoomPlan(room_ids=(None,))
        else:
            failure = Diagnosis()
            failure.add(ReasonCode.no_room_capacity, f"No active room has capacity for {required} student(s)")
            plan = RoomPlan(room_ids=(), failure=failure)
        self._room_plans[assignment.id] = plan
        return plan

    def _try_window(self, assignment: AssignmentSpec, plan: RoomPlan, day: str, start_period: int) -> WindowOutcome:
        periods = tuple(self.grid.window(start_period, assignment.session_length))
        blocker = self.occupancy.teacher_blocker(assignment.teacher_id, day, periods) or self.occupancy.section_blocker(
            assignment.section_ids, day, periods
        )
        if blocker is not None:
            return WindowOutcome(feasible=False, blocker=blocker)

        room_blocker: Blocker | None = None
        for room_id in plan.room_ids:
            current = self.occupancy.room_blocker(room_id, day, periods)
            if current is None:
                return WindowOutcome(feasible=True, room_id=room_id)
            if room_blocker is None or current is Blocker.room_busy:
                room_blocker = current
        return WindowOutcome(feasible=False, blocker=room_blocker)

    def _commit(self, request: PlacementRequest, day: str, start_period: int, room_id: str | None) -> PlacedSession:
        assignment = request.assignment
        self.occupancy.commit(
            teacher_id=assignment.teacher_id,
            section_ids=assignment.section_ids,
            room_id=room_id,
            day=day,
            start_period=start_period,
            length=assignment.session_length,
        )
        self._anchors.setdefault(assignment.id, (day, start_period))
        return PlacedSession(
            assignment_id=assignment.id,
            session_index=request.session_index,
            kind=request.kind,
            teacher_id=assignment.teacher_id,
            subject_id=assignment.subject_id,
            section_ids=assignment.section_ids,
            day=day,
            start_period=start_period,
            session_length=assignment.session_length,
            room_id=room_id,
        )

    def _unplaced(self, request: PlacementRequest, diagnosis: Diagnosis) -> UnplacedSession:
        session = UnplacedSession(
            assignment_id=request.assignment.id,
            session_index=request.session_index,
            kind=request.kind,
            reasons=tuple(diagnosis.reasons),
            suggested_fixes=tuple(diagnosis.suggested_fixes),
            reason_codes=tuple(diagnosis.codes),
        )
        summary = diagnosis.reasons[0] if diagnosis.reasons else "no reason recorded"
        self.log.append(
            f"Unassigned: assignment {request.assignment.id} session {request.session_index + 1} ({summary})"
        )
        return session

    def _place_pinned(self, request: PlacementRequest) -> list[PlacedSession | UnplacedSession]:
        assignment = request.assignment
        plan = self._room_plan(assignment)
        if plan.failure is not None:
            return [self._unplaced(request, plan.failure)]
        valid = self.grid.has_day(request.day) and self.grid.is_valid_start(
            request.start_period, assignment.session_length
        )
        if not valid:
            return [self._unplaced(request, diagnose_pinned(request, blocker=None, valid=False))]
        outcome = self._try_window(assignment, plan, request.day, request.start_period)
        if outcome.feasible:
            return [self._commit(request, request.day, request.start_period, outcome.room_id)]
        return [self._unplaced(request, diagnose_pinned(request, blocker=outcome.blocker, valid=True))]

    def _place_flexible(self, request: PlacementRequest) -> list[PlacedSession | UnplacedSession]:
        assignment = request.assignment
        plan = self._room_plan(assignment)
        if plan.failure is not None:
            return [self._unplaced(request, plan.failure)]
        days = assignment.candidate_days(self.grid)
        starts = self.grid.valid_start_periods(assignment.session_length)
        tally = SearchTally(days=len(days))
        for day in days:
            for start_period in starts:
                outcome = self._try_window(assignment, plan, day, start_period)
                if outcome.feasible:
                    return [self._commit(request, day, start_period, outcome.room_id)]
                tally.record(outcome.blocker)
        diagnosis = diagnose_exhausted(request, tally, grid=self.grid, candidate_days=days)
        return [self._unplaced(request, diagnosis)]

    def _place_pattern_group(self, requests: list[PlacementRequest]) -> list[PlacedSession | UnplacedSession]:
        assignment = requests[0].assignment
        plan = self._room_plan(assignment)
        if plan.failure is not None:
            return [self._unplaced(request, plan.failure) for request in requests]

        permitted = assignment.candidate_days(self.grid)
        starts = self.grid.valid_start_periods(assignment.session_length)
        if not permitted or not starts:
            tally = SearchTally(days=len(permitted))
            return [
                self._unplaced(
                    request,
                    diagnose_exhausted(request, tally, grid=self.grid, candidate_days=permitted),
                )
                for request in requests
            ]

        anchor = self._anchors.get(assignment.id)
        days = [day for day in permitted if anchor is None or day != anchor[0]]
        if anchor is not None:
            starts = (anchor[1],)
        needed = len(requests)

        # Lowest start period free on enough days wins; otherwise the one free on the most days.
        best_start: int | None = anchor[1] if anchor is not None else None
        best_days: list[tuple[str, str | None]] = []
        for start_period in starts:
            feasible: list[tuple[str, str | None]] = []
            for day in days:
                outcome = self._try_window(assignment, plan, day, start_period)
                if outcome.feasible:
                    feasible.append((day, outcome.room_id))
            if len(feasible) >= needed:
                best_start, best_days = start_period, feasible
                break
            if len(feasible) > len(best_days):
                best_start, best_days = start_period, feasible

        outcomes: list[PlacedSession | UnplacedSession] = []
        placements = best_days[:needed]
        for request, (day, room_id) in zip(requests, placements):
            outcomes.append(self._commit(request, day, best_start, room_id))

        leftover = requests[len(placements):]
        if not leftover:
            return outcomes

        used_days = {day for day, _ in placements}
        day_blockers: dict[str, Blocker | None] = {}
        tally: SearchTally | None = None
        if best_start is not None:
            for day in days:
                if day not in used_days:
                    day_blockers[day] = self._try_window(assignment, plan, day, best_start).blocker
        else:
            tally = SearchTally(days=len(days))
            for day in days:
                for start_period in starts:
                    tally.record(self._try_window(assignment, plan, day, start_period).blocker)

        for offset, request in enumerate(leftover):
            if len(placements) + offset >= len(days):
                diagnosis = diagnose_pattern_shortfall(request, needed=needed, available=len(days))
            elif tally is not None:
                diagnosis = diagnose_exhausted(request, tally, grid=self.grid, candidate_days=tuple(days))
            else:
                diagnosis = diagnose_pattern_period(request, start_period=best_start, day_blockers=day_blockers)
            outcomes.append(self._unplaced(request, diagnosis))
        return outcomes

    def run(self) -> ScheduleResult:
        started = perf_counter()
        expansion = expand_requests(self.assignments, self.grid)
        for warning in expansion.warnings:
            self._warn(warning)
        self.log.append(
            f"Expanded {len(self.assignments)} assignment(s) into {expansion.total_sessions} session request(s) "
            f"over {len(self.grid.days)} day(s) x {self.grid.periods_per_day} period(s)"
        )

        pattern_groups: dict[str, list[PlacementRequest]] = {}
        for request in expansion.requests:
            if request.kind is RequestKind.pattern:
                pattern_groups.setdefault(request.assignment.id, []).append(request)

        result = ScheduleResult(log=self.log)
        handled_groups: set[str] = set()
        for request in expansion.requests:
            if request.kind is RequestKind.pinned:
                outcomes = self._place_pinned(request)
            elif request.kind is RequestKind.pattern:
                if request.assignment.id in handled_groups:
                    continue
                handled_groups.add(request.assignment.id)
                outcomes = self._place_pattern_group(pattern_groups[request.assignment.id])
            else:
                outcomes = self._place_flexible(request)
            for outcome in outcomes:
                if isinstance(outcome, PlacedSession):
                    result.placed.append(outcome)
                else:
                    result.unplaced.append(outcome)

        elapsed_ms = int((perf_counter() - started) * 1000)
        self.log.append(
            f"Placed {len(result.placed)} of {result.total_sessions} session(s); "
            f"{len(result.unplaced)} unassigned"
        )
        logger.info(
            "Greedy scheduling finished assignments=%s sessions=%s placed=%s unassigned=%s elapsed_ms=%s",
            len(self.assignments),
            result.total_sessions,
            len(result.placed),
            len(result.unplaced),
            elapsed_ms,
        )
        return result
