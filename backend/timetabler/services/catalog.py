from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from timetabler.schemas.period_template import normalize_day
from timetabler.services.time_grid import TimeGrid


@dataclass(frozen=True)
class RoomSpec:
    id: str
    name: str
    capacity: int
    is_active: bool = True

    @classmethod
    def from_model(cls, room) -> "RoomSpec":
        return cls(id=room.id, name=room.name, capacity=int(room.capacity), is_active=bool(room.is_active))


@dataclass(frozen=True)
class SectionSpec:
    id: str
    name: str
    strength: int = 0
    is_active: bool = True

    @classmethod
    def from_model(cls, section) -> "SectionSpec":
        return cls(
            id=section.id,
            name=section.class_name,
            strength=int(section.strength or 0),
            is_active=bool(section.is_active),
        )


@dataclass(frozen=True)
class AssignmentSpec:
    """Immutable snapshot of one teaching assignment taken at the start of a run."""

    id: str
    teacher_id: str
    subject_id: str
    section_ids: tuple[str, ...]
    sessions_per_week: int = 1
    session_length: int = 1
    preferred_room_ids: tuple[str, ...] = ()
    room_fixed: bool = False
    allowed_days: tuple[str, ...] | None = None
    fixed_day: str | None = None
    fixed_period: int | None = None
    same_daily_pattern: bool = False
    sequence: int = 0

    @classmethod
    def from_model(cls, record) -> "AssignmentSpec":
        allowed = record.allowed_days
        return cls(
            id=record.id,
            teacher_id=record.teacher_id,
            subject_id=record.subject_id,
            section_ids=tuple(record.section_ids or ()),
            sessions_per_week=int(record.sessions_per_week),
            session_length=int(record.session_length),
            preferred_room_ids=tuple(record.preferred_room_ids or ()),
            room_fixed=bool(record.room_fixed),
            allowed_days=tuple(normalize_day(day) for day in allowed) if allowed else None,
            fixed_day=normalize_day(record.fixed_day) if record.fixed_day else None,
            fixed_period=record.fixed_period,
            same_daily_pattern=bool(record.same_daily_pattern),
            sequence=int(record.sequence or 0),
        )

    @property
    def has_pin(self) -> bool:
        return self.fixed_day is not None and self.fixed_period is not None

    @property
    def has_partial_pin(self) -> bool:
        return (self.fixed_day is None) != (self.fixed_period is None)

    def candidate_days(self, grid: TimeGrid) -> tuple[str, ...]:
        if self.allowed_days is None:
            return grid.days
        allowed = set(self.allowed_days)
        return tuple(day for day in grid.days if day in allowed)


class RequestKind(str, Enum):
    pinned = "pinned"
    pattern = "pattern"
    flexible = "flexible"


KIND_RANK = {
    RequestKind.pinned: 0,
    RequestKind.pattern: 1,
    RequestKind.flexible: 2,
}


@dataclass(frozen=True)
class PlacementRequest:
    request_id: int
    assignment: AssignmentSpec
    session_index: int
    kind: RequestKind
    day: str | None = None
    start_period: int | None = None

    @property
    def length(self) -> int:
        return self.assignment.session_length


@dataclass
class ExpansionResult:
    requests: list[PlacementRequest] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total_sessions(self) -> int:
        return len(self.requests)


def request_sort_key(request: PlacementRequest) -> tuple:
    # Longest flexible sessions first; pinned and pattern requests keep catalog order.
    length_rank = -request.length if request.kind is RequestKind.flexible else 0
    return (
        KIND_RANK[request.kind],
        length_rank,
        request.assignment.sequence,
        request.assignment.id,
        request.session_index,
    )


def expand_requests(assignments: list[AssignmentSpec], grid: TimeGrid) -> ExpansionResult:
    result = ExpansionResult()
    next_id = 0

    def emit(assignment: AssignmentSpec, index: int, kind: RequestKind, **pin) -> None:
        nonlocal next_id
        result.requests.append(
            PlacementRequest(request_id=next_id, assignment=assignment, session_index=index, kind=kind, **pin)
        )
        next_id += 1

    for assignment in assignments:
        remaining = assignment.sessions_per_week
        index = 0

        if assignment.has_partial_pin:
            result.warnings.append(
                f"Assignment {assignment.id}: fixed day and fixed period must both be set; pin ignored"
            )
        if assignment.has_pin and remaining > 0:
            if not grid.has_day(assignment.fixed_day):
                result.warnings.append(
                    f"Assignment {assignment.id}: fixed day {assignment.fixed_day} is not an active day"
                )
            elif not grid.is_valid_start(assignment.fixed_period, assignment.session_length):
                result.warnings.append(
                    f"Assignment {assignment.id}: fixed period {assignment.fixed_period} cannot start a "
                    f"{assignment.session_length}-period session"
                )
            emit(
                assignment,
                index,
                RequestKind.pinned,
                day=assignment.fixed_day,
                start_period=assignment.fixed_period,
            )
            index += 1
            remaining -= 1

        if assignment.allowed_days is not None and not assignment.candidate_days(grid):
            result.warnings.append(
                f"Assignment {assignment.id}: allowed days do not intersect the active days"
            )

        kind = RequestKind.pattern if assignment.same_daily_pattern else RequestKind.flexible
        if kind is RequestKind.pattern and remaining > 0:
            qualifying = [
                day for day in assignment.candidate_days(grid)
                if not (assignment.has_pin and day == assignment.fixed_day)
            ]
            if len(qualifying) < remaining:
                result.warnings.append(
                    f"Assignment {assignment.id}: same daily pattern needs {remaining} day(s) "
                    f"but only {len(qualifying)} qualify"
                )

        for _ in range(remaining):
            emit(assignment, index, kind)
            index += 1

    result.requests.sort(key=request_sort_key)
    return result
