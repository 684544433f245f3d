from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from timetabler.schemas.period_template import validate_day_value


def _unique(values: list[str]) -> list[str]:
    seen: list[str] = []
    for item in values:
        cleaned = item.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class TeachingAssignmentBase(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    section_ids: list[str] = Field(min_length=1, max_length=20)
    sessions_per_week: int = Field(default=5, ge=1, le=60)
    session_length: int = Field(default=1, ge=1, le=12)
    preferred_room_ids: list[str] = Field(default_factory=list, max_length=20)
    room_fixed: bool = False
    allowed_days: list[str] | None = Field(default=None, max_length=7)
    fixed_day: str | None = None
    fixed_period: int | None = Field(default=None, ge=1, le=24)
    same_daily_pattern: bool = False
    academic_year: str = Field(min_length=1, max_length=20)
    is_active: bool = True

    @field_validator("section_ids", "preferred_room_ids")
    @classmethod
    def validate_id_lists(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @field_validator("allowed_days")
    @classmethod
    def validate_allowed_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        days: list[str] = []
        for item in value:
            day = validate_day_value(item)
            if day not in days:
                days.append(day)
        return days or None

    @field_validator("fixed_day")
    @classmethod
    def validate_fixed_day(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_day_value(value)

    @model_validator(mode="after")
    def validate_relationships(self) -> "TeachingAssignmentBase":
        if not self.section_ids:
            raise ValueError("At least one section is required")
        if self.room_fixed and not self.preferred_room_ids:
            raise ValueError("room_fixed requires at least one preferred room")
        if (self.fixed_day is None) != (self.fixed_period is None):
            raise ValueError("fixed_day and fixed_period must be set together")
        if self.fixed_period is not None and self.fixed_period + self.session_length - 1 > 24:
            raise ValueError("fixed_period leaves no room for the session length")
        return self


class TeachingAssignmentCreate(TeachingAssignmentBase):
    pass


class TeachingAssignmentUpdate(BaseModel):
    teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    subject_id: str | None = Field(default=None, min_length=1, max_length=36)
    section_ids: list[str] | None = Field(default=None, min_length=1, max_length=20)
    sessions_per_week: int | None = Field(default=None, ge=1, le=60)
    session_length: int | None = Field(default=None, ge=1, le=12)
    preferred_room_ids: list[str] | None = Field(default=None, max_length=20)
    room_fixed: bool | None = None
    allowed_days: list[str] | None = Field(default=None, max_length=7)
    fixed_day: str | None = None
    fixed_period: int | None = Field(default=None, ge=1, le=24)
    same_daily_pattern: bool | None = None
    academic_year: str | None = Field(default=None, min_length=1, max_length=20)
    is_active: bool | None = None


class TeachingAssignmentOut(TeachingAssignmentBase):
    id: str
    sequence: int

    model_config = {"from_attributes": True}
