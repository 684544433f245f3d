from typing import Literal

from pydantic import BaseModel, Field


ConflictType = Literal[
    "room_conflict",
    "teacher_conflict",
    "section_conflict",
    "break_period",
    "outside_grid",
]


class ConflictDetail(BaseModel):
    id: str
    conflict_type: ConflictType
    description: str
    severity: Literal["hard", "soft"] = "hard"
    day_of_week: str | None = None
    periods: list[int] = Field(default_factory=list)
    affected_slots: list[str]


class ResolutionAction(BaseModel):
    action_type: Literal["move_slot", "change_room", "regenerate"]
    description: str
    target_slot_id: str
    parameters: dict = Field(default_factory=dict)


class ConflictReport(BaseModel):
    timetable_id: str
    checked_slots: int
    conflicts: list[ConflictDetail]
    suggested_resolutions: list[ResolutionAction]
