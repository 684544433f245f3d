from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from timetabler.models.generated_timetable import GenerationStatus


class GenerateTimetableRequest(BaseModel):
    timetable_name: str = Field(alias="timetableName", min_length=1, max_length=200)
    academic_year: str = Field(alias="academicYear", min_length=1, max_length=20)
    period_template_id: str | None = Field(default=None, alias="periodTemplateId", max_length=36)

    model_config = {"populate_by_name": True}

    @field_validator("timetable_name", "academic_year")
    @classmethod
    def strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Value must not be blank")
        return stripped

    @field_validator("period_template_id")
    @classmethod
    def blank_template_means_active(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class GenerateTimetableResponse(BaseModel):
    success: bool
    timetable_id: str | None = Field(default=None, alias="timetableId")
    total_sessions: int | None = Field(default=None, alias="totalSessions")
    assigned_sessions: int | None = Field(default=None, alias="assignedSessions")
    unassigned_sessions: int | None = Field(default=None, alias="unassignedSessions")
    error: str | None = None

    model_config = {"populate_by_name": True}


class GeneratedTimetableOut(BaseModel):
    id: str
    name: str
    academic_year: str
    period_template_id: str | None = None
    generation_status: GenerationStatus
    total_sessions: int
    assigned_sessions: int
    unassigned_sessions: int
    generation_log: list[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime | None = None
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class TimetableSlotOut(BaseModel):
    id: str
    timetable_id: str
    teaching_assignment_id: str
    session_index: int
    teacher_id: str
    subject_id: str
    section_ids: list[str]
    day_of_week: str
    period_number: int
    session_length: int
    room_id: str | None = None

    model_config = {"from_attributes": True}


class UnassignedSessionOut(BaseModel):
    id: str
    timetable_id: str
    teaching_assignment_id: str
    session_index: int
    conflict_reasons: list[str]
    suggested_fixes: list[str]

    model_config = {"from_attributes": True}


GridView = Literal["section", "teacher", "room"]
