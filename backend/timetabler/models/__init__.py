from timetabler.models.availability import AvailabilityConstraint, ConstraintType  # noqa: F401
from timetabler.models.class_section import ClassSection  # noqa: F401
from timetabler.models.generated_timetable import (  # noqa: F401
    GeneratedTimetable,
    GenerationStatus,
    TimetableSlot,
    UnassignedSession,
)
from timetabler.models.period_template import PeriodTemplate  # noqa: F401
from timetabler.models.room import Room, RoomType  # noqa: F401
from timetabler.models.teaching_assignment import TeachingAssignment  # noqa: F401
