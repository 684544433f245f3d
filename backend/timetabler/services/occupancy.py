from __future__ import annotations

from enum import Enum
from typing import Iterable

from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.time_grid import TimeGrid


class Blocker(str, Enum):
    break_period = "break_period"
    teacher_blocked = "teacher_blocked"
    teacher_busy = "teacher_busy"
    section_busy = "section_busy"
    room_blocked = "room_blocked"
    room_busy = "room_busy"


class OccupancyIndex:
    """Busy sets for teachers, rooms and sections keyed by (day, period, entity)."""

    def __init__(self, grid: TimeGrid, constraints: ConstraintStore) -> None:
        self.grid = grid
        self.constraints = constraints
        self._teacher_busy: set[tuple[str, int, str]] = set()
        self._room_busy: set[tuple[str, int, str]] = set()
        self._section_busy: set[tuple[str, int, str]] = set()

    def teacher_blocker(self, teacher_id: str, day: str, periods: Iterable[int]) -> Blocker | None:
        periods = tuple(periods)
        # Blackouts take precedence so diagnostics can point at availability first.
        if any(self.constraints.teacher_blocked(teacher_id, day, p) for p in periods):
            return Blocker.teacher_blocked
        if any((day, p, teacher_id) in self._teacher_busy for p in periods):
            return Blocker.teacher_busy
        return None

    def section_blocker(self, section_ids: Iterable[str], day: str, periods: Iterable[int]) -> Blocker | None:
        periods = tuple(periods)
        for section_id in section_ids:
            if any((day, p, section_id) in self._section_busy for p in periods):
                return Blocker.section_busy
        return None

    def room_blocker(self, room_id: str | None, day: str, periods: Iterable[int]) -> Blocker | None:
        if room_id is None:
            return None
        periods = tuple(periods)
        if any(self.constraints.room_blocked(room_id, day, p) for p in periods):
            return Blocker.room_blocked
        if any((day, p, room_id) in self._room_busy for p in periods):
            return Blocker.room_busy
        return None

    def check(
        self,
        *,
        teacher_id: str,
        section_ids: Iterable[str],
        room_id: str | None,
        day: str,
        start_period: int,
        length: int,
    ) -> Blocker | None:
        periods = tuple(self.grid.window(start_period, length))
        if any(self.grid.is_break(p) for p in periods):
            return Blocker.break_period
        return (
            self.teacher_blocker(teacher_id, day, periods)
            or self.section_blocker(section_ids, day, periods)
            or self.room_blocker(room_id, day, periods)
        )

    def is_feasible(self, **candidate) -> bool:
        return self.check(**candidate) is None

    def commit(
        self,
        *,
        teacher_id: str,
        section_ids: Iterable[str],
        room_id: str | None,
        day: str,
        start_period: int,
        length: int,
    ) -> None:
        section_ids = tuple(section_ids)
        for period in self.grid.window(start_period, length):
            self._teacher_busy.add((day, period, teacher_id))
            for section_id in section_ids:
                self._section_busy.add((day, period, section_id))
            if room_id is not None:
                self._room_busy.add((day, period, room_id))

    def busy_cells(self) -> int:
        return len(self._teacher_busy)
