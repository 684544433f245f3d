from collections import defaultdict
from typing import Dict, List

from timetabler.models.generated_timetable import TimetableSlot
from timetabler.schemas.conflict import ConflictDetail, ConflictReport, ResolutionAction
from timetabler.services.time_grid import TimeGrid


class ConflictService:
    """Re-checks persisted slots for double bookings without trusting the scheduler."""

    def __init__(
        self,
        timetable_id: str,
        slots: List[TimetableSlot],
        grid: TimeGrid | None = None,
        room_names: Dict[str, str] | None = None,
    ):
        self.timetable_id = timetable_id
        self.slots = slots
        self.grid = grid
        self.room_names = room_names or {}

    def _grid_conflicts(self, slot: TimetableSlot) -> List[ConflictDetail]:
        if self.grid is None:
            return []
        periods = list(range(slot.period_number, slot.end_period + 1))
        if not self.grid.has_day(slot.day_of_week) or not self.grid.is_valid_start(
            slot.period_number, slot.session_length
        ):
            breaks = [period for period in periods if self.grid.is_break(period)]
            if breaks and self.grid.has_day(slot.day_of_week) and slot.end_period <= self.grid.periods_per_day:
                return [
                    ConflictDetail(
                        id=f"break-{slot.id}",
                        conflict_type="break_period",
                        description=f"Session {slot.subject_id} covers break period(s) {breaks}",
                        day_of_week=slot.day_of_week,
                        periods=breaks,
                        affected_slots=[slot.id],
                    )
                ]
            return [
                ConflictDetail(
                    id=f"grid-{slot.id}",
                    conflict_type="outside_grid",
                    description=(
                        f"Session {slot.subject_id} on {slot.day_of_week} P{slot.period_number}-P{slot.end_period} "
                        "is outside the period template"
                    ),
                    day_of_week=slot.day_of_week,
                    periods=periods,
                    affected_slots=[slot.id],
                )
            ]
        return []

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        slots_by_day = defaultdict(list)
        for slot in self.slots:
            slots_by_day[slot.day_of_week].append(slot)
            conflicts.extend(self._grid_conflicts(slot))

        for day, day_slots in slots_by_day.items():
            day_slots.sort(key=lambda item: (item.period_number, item.id))
            n = len(day_slots)
            for i in range(n):
                s1 = day_slots[i]
                for j in range(i + 1, n):
                    s2 = day_slots[j]
                    # Sorted by start, so nothing later can overlap s1 either.
                    if s2.period_number > s1.end_period:
                        break
                    shared = list(range(s2.period_number, min(s1.end_period, s2.end_period) + 1))

                    if s1.teacher_id == s2.teacher_id:
                        conflicts.append(ConflictDetail(
                            id=f"teacher-{s1.id}-{s2.id}",
                            conflict_type="teacher_conflict",
                            description=f"Teacher {s1.teacher_id} double-booked on {day}: {s1.subject_id} and {s2.subject_id}",
                            day_of_week=day,
                            periods=shared,
                            affected_slots=[s1.id, s2.id],
                        ))
                    if s1.room_id and s1.room_id == s2.room_id:
                        room_name = self.room_names.get(s1.room_id, s1.room_id)
                        conflicts.append(ConflictDetail(
                            id=f"room-{s1.id}-{s2.id}",
                            conflict_type="room_conflict",
                            description=f"Room overlap in {room_name} on {day}: {s1.subject_id} and {s2.subject_id}",
                            day_of_week=day,
                            periods=shared,
                            affected_slots=[s1.id, s2.id],
                        ))
                    common_sections = sorted(set(s1.section_ids) & set(s2.section_ids))
                    if common_sections:
                        conflicts.append(ConflictDetail(
                            id=f"section-{s1.id}-{s2.id}",
                            conflict_type="section_conflict",
                            description=(
                                f"Section(s) {', '.join(common_sections)} double-booked on {day}: "
                                f"{s1.subject_id} and {s2.subject_id}"
                            ),
                            day_of_week=day,
                            periods=shared,
                            affected_slots=[s1.id, s2.id],
                        ))

        report = ConflictReport(
            timetable_id=self.timetable_id,
            checked_slots=len(self.slots),
            conflicts=conflicts,
            suggested_resolutions=[],
        )
        for conflict in conflicts:
            report.suggested_resolutions.extend(self.generate_resolutions(conflict))
        return report

    def generate_resolutions(self, conflict: ConflictDetail) -> List[ResolutionAction]:
        resolutions = []
        target = conflict.affected_slots[-1]
        if conflict.conflict_type == "room_conflict":
            resolutions.append(ResolutionAction(
                action_type="change_room",
                description="Move the later session to a free room",
                target_slot_id=target,
            ))
        elif conflict.conflict_type in ("teacher_conflict", "section_conflict", "break_period"):
            resolutions.append(ResolutionAction(
                action_type="move_slot",
                description="Move the session to a different time slot",
                target_slot_id=target,
            ))
        else:
            resolutions.append(ResolutionAction(
                action_type="regenerate",
                description="Regenerate the timetable against the current period template",
                target_slot_id=target,
            ))
        return resolutions
