from __future__ import annotations

import csv
import io
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetabler.core.exceptions import AppError
from timetabler.models.class_section import ClassSection
from timetabler.models.generated_timetable import GeneratedTimetable, TimetableSlot
from timetabler.models.period_template import PeriodTemplate
from timetabler.models.room import Room
from timetabler.schemas.period_template import DAY_VALUES, normalize_day

CONTINUATION_MARK = "↓"
UNKNOWN_ROOM = "TBA"


def _day_rank(day: str) -> tuple[int, str]:
    return (DAY_VALUES.index(day) if day in DAY_VALUES else len(DAY_VALUES), day)


def _slot_order(slot: TimetableSlot) -> tuple:
    return (_day_rank(slot.day_of_week), slot.period_number, slot.id)


def find_slots(
    db: Session,
    timetable_id: str,
    *,
    section_id: str | None = None,
    teacher_id: str | None = None,
    room_id: str | None = None,
    day: str | None = None,
    period: int | None = None,
) -> list[TimetableSlot]:
    """Slots of a timetable matching every given filter.

    ``period`` matches any slot whose range covers it, so a two-period session
    starting at P3 is returned for ``period=4``.
    """
    query = select(TimetableSlot).where(TimetableSlot.timetable_id == timetable_id)
    if teacher_id is not None:
        query = query.where(TimetableSlot.teacher_id == teacher_id)
    if room_id is not None:
        query = query.where(TimetableSlot.room_id == room_id)
    if day is not None:
        query = query.where(TimetableSlot.day_of_week == normalize_day(day))
    slots: Iterable[TimetableSlot] = db.execute(query).scalars()

    if section_id is not None:
        slots = [slot for slot in slots if section_id in (slot.section_ids or [])]
    if period is not None:
        slots = [
            slot for slot in slots if slot.period_number <= period <= slot.end_period
        ]
    return sorted(slots, key=_slot_order)


GRID_VIEWS = ("section", "teacher", "room")


def _matches_view(slot: TimetableSlot, view: str, entity_id: str) -> bool:
    if view == "section":
        return entity_id in (slot.section_ids or [])
    if view == "teacher":
        return slot.teacher_id == entity_id
    return slot.room_id == entity_id


class GridExporter:
    """Renders one entity's week of a generated timetable as CSV."""

    def __init__(self, db: Session, timetable: GeneratedTimetable) -> None:
        self.db = db
        self.timetable = timetable
        self.slots = list(
            db.execute(select(TimetableSlot).where(TimetableSlot.timetable_id == timetable.id)).scalars()
        )
        self.room_names = {room.id: room.name for room in db.execute(select(Room)).scalars()}
        self.section_names = {
            section.id: section.class_name for section in db.execute(select(ClassSection)).scalars()
        }

    def _grid_shape(self) -> tuple[list[str], int]:
        template = None
        if self.timetable.period_template_id:
            template = self.db.get(PeriodTemplate, self.timetable.period_template_id)
        days: list[str] = []
        periods = max((slot.end_period for slot in self.slots), default=0)
        if template is not None:
            days = [normalize_day(day) for day in template.days_of_week or []]
            periods = max(periods, int(template.periods_per_day))
        # Slot days missing from the current template go after its days.
        extra = {slot.day_of_week for slot in self.slots} - set(days)
        days.extend(sorted(extra, key=_day_rank))
        return days, periods

    def _sections_label(self, slot: TimetableSlot) -> str:
        return "+".join(self.section_names.get(section_id, section_id) for section_id in slot.section_ids)

    def cell_text(self, slot: TimetableSlot, view: str) -> str:
        room = self.room_names.get(slot.room_id, UNKNOWN_ROOM) if slot.room_id else UNKNOWN_ROOM
        if view == "section":
            return f"{slot.subject_id} - {slot.teacher_id} ({room})"
        if view == "teacher":
            return f"{slot.subject_id} - {self._sections_label(slot)} ({room})"
        return f"{slot.subject_id} - {slot.teacher_id} ({self._sections_label(slot)})"

    def rows(self, view: str, entity_id: str) -> list[list[str]]:
        if view not in GRID_VIEWS:
            raise AppError(f"Unknown grid view: {view}", status_code=400, details={"view": view})
        days, periods = self._grid_shape()
        mine = [slot for slot in self.slots if _matches_view(slot, view, entity_id)]
        rows = [["Period", *(day.capitalize() for day in days)]]
        for period in range(1, periods + 1):
            row = [f"P{period}"]
            for day in days:
                slot = next((item for item in mine if item.covers(day, period)), None)
                if slot is None:
                    row.append("")
                elif slot.period_number != period:
                    row.append(CONTINUATION_MARK)
                else:
                    row.append(self.cell_text(slot, view))
            rows.append(row)
        return rows

    def to_csv(self, view: str, entity_id: str) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerows(self.rows(view, entity_id))
        return buffer.getvalue()
