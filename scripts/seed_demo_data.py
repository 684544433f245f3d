"""Seed a small demo school for the timetable generator.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from timetabler.db.bootstrap import ensure_runtime_schema_compatibility
from timetabler.db.session import SessionLocal
from timetabler.models.availability import AvailabilityConstraint, ConstraintType
from timetabler.models.class_section import ClassSection
from timetabler.models.period_template import PeriodTemplate
from timetabler.models.room import Room, RoomType
from timetabler.models.teaching_assignment import TeachingAssignment
from timetabler.schemas.generator import GenerateTimetableRequest
from timetabler.schemas.period_template import default_period_timings
from timetabler.services.generation import TimetableGenerationService

ACADEMIC_YEAR = os.getenv("SEED_ACADEMIC_YEAR", "2026-2027").strip() or "2026-2027"
GENERATE = os.getenv("SEED_GENERATE", "true").strip().lower() in {"1", "true", "yes", "on"}

WORKING_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]
PERIODS_PER_DAY = 8
TEMPLATE_NAME = "Standard Weekday"

ROOMS = [
    ("A101", 45, RoomType.lecture, ["projector"]),
    ("A102", 45, RoomType.lecture, ["projector"]),
    ("A103", 60, RoomType.lecture, ["projector", "smartboard"]),
    ("LAB-1", 35, RoomType.lab, ["computers"]),
    ("LAB-2", 35, RoomType.lab, ["chemistry benches"]),
]

SECTIONS = [
    ("Grade 9 A", "G9-A", 32),
    ("Grade 9 B", "G9-B", 30),
    ("Grade 10 A", "G10-A", 34),
]

# teacher, subject, section codes, sessions/week, length, room names, extra options
ASSIGNMENTS = [
    ("t-meera", "math", ["G9-A"], 5, 1, [], {}),
    ("t-meera", "math", ["G9-B"], 5, 1, [], {}),
    ("t-arjun", "physics", ["G9-A"], 3, 1, [], {}),
    ("t-arjun", "physics-lab", ["G9-A"], 1, 2, ["LAB-2"], {"room_fixed": True}),
    ("t-arjun", "physics", ["G10-A"], 4, 1, [], {}),
    ("t-lena", "english", ["G9-A"], 4, 1, [], {"same_daily_pattern": True}),
    ("t-lena", "english", ["G9-B"], 4, 1, [], {}),
    ("t-ravi", "computing", ["G9-B"], 2, 2, ["LAB-1"], {"allowed_days": ["tuesday", "thursday"]}),
    ("t-ravi", "computing", ["G10-A"], 2, 2, ["LAB-1"], {}),
    ("t-sara", "assembly", ["G9-A", "G9-B", "G10-A"], 1, 1, ["A103"], {"fixed_day": "monday", "fixed_period": 1}),
    ("t-sara", "history", ["G10-A"], 3, 1, [], {}),
]

# teacher, day, periods
TEACHER_BLACKOUTS = [
    ("t-lena", "friday", [6, 7, 8]),
    ("t-ravi", "monday", [1, 2, 3, 4, 5, 6, 7, 8]),
]


def upsert_period_template(session) -> PeriodTemplate:
    template = session.execute(
        select(PeriodTemplate).where(
            PeriodTemplate.name == TEMPLATE_NAME,
            PeriodTemplate.academic_year == ACADEMIC_YEAR,
        )
    ).scalar_one_or_none()
    timings = [item.model_dump() for item in default_period_timings(PERIODS_PER_DAY)]
    if template is None:
        template = PeriodTemplate(name=TEMPLATE_NAME, academic_year=ACADEMIC_YEAR)
        session.add(template)
    template.days_of_week = WORKING_DAYS
    template.periods_per_day = PERIODS_PER_DAY
    template.period_timings = timings
    template.is_active = True
    session.flush()

    for other in session.execute(select(PeriodTemplate).where(PeriodTemplate.id != template.id)).scalars():
        other.is_active = False
    return template


def upsert_rooms(session) -> dict[str, Room]:
    rooms: dict[str, Room] = {}
    for name, capacity, room_type, facilities in ROOMS:
        room = session.execute(select(Room).where(Room.name == name)).scalar_one_or_none()
        if room is None:
            room = Room(name=name)
            session.add(room)
        room.capacity = capacity
        room.room_type = room_type
        room.facilities = facilities
        room.is_active = True
        rooms[name] = room
    session.flush()
    return rooms


def upsert_sections(session) -> dict[str, ClassSection]:
    sections: dict[str, ClassSection] = {}
    for class_name, class_code, strength in SECTIONS:
        section = session.execute(
            select(ClassSection).where(ClassSection.class_code == class_code)
        ).scalar_one_or_none()
        if section is None:
            section = ClassSection(class_code=class_code)
            session.add(section)
        section.class_name = class_name
        section.academic_year = ACADEMIC_YEAR
        section.strength = strength
        section.is_active = True
        sections[class_code] = section
    session.flush()
    return sections


def upsert_teacher_blackouts(session) -> None:
    for teacher_id, day, periods in TEACHER_BLACKOUTS:
        for period in periods:
            cell = session.execute(
                select(AvailabilityConstraint).where(
                    AvailabilityConstraint.constraint_type == ConstraintType.teacher,
                    AvailabilityConstraint.entity_id == teacher_id,
                    AvailabilityConstraint.day_of_week == day,
                    AvailabilityConstraint.period_number == period,
                    AvailabilityConstraint.academic_year == ACADEMIC_YEAR,
                )
            ).scalar_one_or_none()
            if cell is None:
                cell = AvailabilityConstraint(
                    constraint_type=ConstraintType.teacher,
                    entity_id=teacher_id,
                    day_of_week=day,
                    period_number=period,
                    academic_year=ACADEMIC_YEAR,
                )
                session.add(cell)
            cell.is_available = False
            cell.reason = "Demo blackout"


def replace_assignments(session, sections: dict[str, ClassSection], rooms: dict[str, Room]) -> None:
    for existing in session.execute(
        select(TeachingAssignment).where(TeachingAssignment.academic_year == ACADEMIC_YEAR)
    ).scalars():
        session.delete(existing)
    session.flush()

    for sequence, (teacher_id, subject_id, codes, per_week, length, room_names, options) in enumerate(ASSIGNMENTS):
        session.add(
            TeachingAssignment(
                sequence=sequence,
                teacher_id=teacher_id,
                subject_id=subject_id,
                section_ids=[sections[code].id for code in codes],
                sessions_per_week=per_week,
                session_length=length,
                preferred_room_ids=[rooms[name].id for name in room_names],
                academic_year=ACADEMIC_YEAR,
                **options,
            )
        )


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        upsert_period_template(session)
        rooms = upsert_rooms(session)
        sections = upsert_sections(session)
        upsert_teacher_blackouts(session)
        replace_assignments(session, sections, rooms)
        session.commit()

        assignment_count = session.execute(select(func.count(TeachingAssignment.id))).scalar_one()
        blackout_count = session.execute(select(func.count(AvailabilityConstraint.id))).scalar_one()

        result = None
        if GENERATE:
            result = TimetableGenerationService(session).generate(
                GenerateTimetableRequest(timetable_name="Demo draft", academic_year=ACADEMIC_YEAR)
            )

    print("Demo data seeded successfully.")
    print("")
    print(f"Academic year: {ACADEMIC_YEAR}")
    print(f"Period template: {TEMPLATE_NAME} ({PERIODS_PER_DAY} periods x {len(WORKING_DAYS)} days)")
    print(f"Rooms: {len(rooms)}")
    print(f"Sections: {len(sections)}")
    print(f"Teaching assignments: {assignment_count}")
    print(f"Availability cells: {blackout_count}")
    if result is not None:
        print("")
        if result.success:
            print(
                f"Generated timetable {result.timetable_id}: "
                f"{result.assigned_sessions}/{result.total_sessions} sessions placed, "
                f"{result.unassigned_sessions} unassigned"
            )
        else:
            print(f"Generation failed: {result.error}")


if __name__ == "__main__":
    main()
