from pydantic import BaseModel, Field, field_validator

from timetabler.models.room import RoomType


def _clean_facilities(value: list[str]) -> list[str]:
    cleaned: list[str] = []
    for item in value:
        facility = item.strip()
        if facility and facility not in cleaned:
            cleaned.append(facility)
    return cleaned


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(ge=1, le=1000)
    room_type: RoomType = RoomType.lecture
    facilities: list[str] = Field(default_factory=list, max_length=50)
    is_active: bool = True

    @field_validator("facilities")
    @classmethod
    def validate_facilities(cls, value: list[str]) -> list[str]:
        return _clean_facilities(value)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1, le=1000)
    room_type: RoomType | None = None
    facilities: list[str] | None = Field(default=None, max_length=50)
    is_active: bool | None = None

    @field_validator("facilities")
    @classmethod
    def validate_facilities(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _clean_facilities(value)


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}
