from __future__ import annotations

from collections import Counter
from typing import Iterable

from timetabler.models.availability import ConstraintType
from timetabler.schemas.period_template import normalize_day


def _type_key(constraint_type: ConstraintType | str) -> str:
    return ConstraintType(constraint_type).value


class ConstraintStore:
    """Blocked teacher/room cells of one academic year.

    Only blackouts are materialized; any cell without a record is available.
    """

    def __init__(self, academic_year: str | None = None) -> None:
        self.academic_year = academic_year
        self._blocked: set[tuple[str, str, str, int]] = set()

    @classmethod
    def from_rows(cls, rows: Iterable, *, academic_year: str | None = None) -> "ConstraintStore":
        store = cls(academic_year)
        # Rows are applied in order so a duplicated cell resolves to its last write.
        for row in rows:
            if academic_year is not None and row.academic_year != academic_year:
                continue
            if row.is_available:
                store.release(row.constraint_type, row.entity_id, row.day_of_week, row.period_number)
            else:
                store.block(row.constraint_type, row.entity_id, row.day_of_week, row.period_number)
        return store

    def block(self, constraint_type: ConstraintType | str, entity_id: str, day: str, period: int) -> None:
        self._blocked.add((_type_key(constraint_type), entity_id, normalize_day(day), int(period)))

    def release(self, constraint_type: ConstraintType | str, entity_id: str, day: str, period: int) -> None:
        self._blocked.discard((_type_key(constraint_type), entity_id, normalize_day(day), int(period)))

    def is_blocked(self, constraint_type: ConstraintType | str, entity_id: str, day: str, period: int) -> bool:
        return (_type_key(constraint_type), entity_id, day, period) in self._blocked

    def teacher_blocked(self, teacher_id: str, day: str, period: int) -> bool:
        return (ConstraintType.teacher.value, teacher_id, day, period) in self._blocked

    def room_blocked(self, room_id: str, day: str, period: int) -> bool:
        return (ConstraintType.room.value, room_id, day, period) in self._blocked

    def blocked_counts(self) -> Counter[tuple[str, str]]:
        return Counter((kind, entity_id) for kind, entity_id, _, _ in self._blocked)

    def __len__(self) -> int:
        return len(self._blocked)
