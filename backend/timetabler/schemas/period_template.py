from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_VALUES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DAY_SHORT_MAP = {
    "mon": "monday",
    "tue": "tuesday",
    "wed": "wednesday",
    "thu": "thursday",
    "fri": "friday",
    "sat": "saturday",
    "sun": "sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_day(value: str) -> str:
    day = value.strip().lower()
    return DAY_SHORT_MAP.get(day, day)


def validate_day_value(value: str) -> str:
    day = normalize_day(value)
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {value}")
    return day


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def default_period_timings(count: int, *, break_after: int = 3) -> list["PeriodTimingPayload"]:
    """45-minute periods from 08:00 with a 30-minute break in slot ``break_after + 1``."""
    timings: list[PeriodTimingPayload] = []
    current = 8 * 60
    for number in range(1, count + 1):
        is_break = number == break_after + 1 and count > break_after + 1
        length = 30 if is_break else 45
        timings.append(
            PeriodTimingPayload(
                period_number=number,
                start_time=minutes_to_time(current),
                end_time=minutes_to_time(current + length),
                is_break=is_break,
            )
        )
        current += length
    return timings


class PeriodTimingPayload(BaseModel):
    period_number: int = Field(ge=1, le=24)
    start_time: str
    end_time: str
    is_break: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "PeriodTimingPayload":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class PeriodTemplateBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    academic_year: str = Field(min_length=1, max_length=20)
    days_of_week: list[str] = Field(min_length=1, max_length=7)
    periods_per_day: int = Field(ge=1, le=24)
    period_timings: list[PeriodTimingPayload] = Field(default_factory=list, max_length=24)
    is_active: bool = False

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        days = [validate_day_value(item) for item in value]
        if len(set(days)) != len(days):
            raise ValueError("days_of_week must not repeat a day")
        return days

    @model_validator(mode="after")
    def validate_timings(self) -> "PeriodTemplateBase":
        numbers = [item.period_number for item in self.period_timings]
        if len(set(numbers)) != len(numbers):
            raise ValueError("period_timings must not repeat a period_number")
        out_of_range = [number for number in numbers if number > self.periods_per_day]
        if out_of_range:
            raise ValueError(
                f"period_timings reference periods beyond periods_per_day: {', '.join(map(str, out_of_range))}"
            )
        self.period_timings = sorted(self.period_timings, key=lambda item: item.period_number)
        return self


class PeriodTemplateCreate(PeriodTemplateBase):
    pass


class PeriodTemplateUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    academic_year: str | None = Field(default=None, min_length=1, max_length=20)
    days_of_week: list[str] | None = Field(default=None, min_length=1, max_length=7)
    periods_per_day: int | None = Field(default=None, ge=1, le=24)
    period_timings: list[PeriodTimingPayload] | None = Field(default=None, max_length=24)

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        days = [validate_day_value(item) for item in value]
        if len(set(days)) != len(days):
            raise ValueError("days_of_week must not repeat a day")
        return days


class PeriodTemplateOut(PeriodTemplateBase):
    id: str

    model_config = {"from_attributes": True}
