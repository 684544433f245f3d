from pydantic import BaseModel, Field, field_validator

from timetabler.models.availability import ConstraintType
from timetabler.schemas.period_template import validate_day_value


class AvailabilityConstraintBase(BaseModel):
    constraint_type: ConstraintType
    entity_id: str = Field(min_length=1, max_length=36)
    day_of_week: str
    period_number: int = Field(ge=1, le=24)
    is_available: bool = False
    reason: str | None = Field(default=None, max_length=500)
    academic_year: str = Field(min_length=1, max_length=20)

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return validate_day_value(value)


class AvailabilityConstraintUpsert(AvailabilityConstraintBase):
    pass


class AvailabilityConstraintOut(AvailabilityConstraintBase):
    id: str

    model_config = {"from_attributes": True}


class AvailabilityClearResult(BaseModel):
    deleted: int
