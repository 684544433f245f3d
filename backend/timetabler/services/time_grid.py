from __future__ import annotations

from dataclasses import dataclass, field

from timetabler.core.exceptions import SchedulerError
from timetabler.schemas.period_template import DAY_VALUES, normalize_day


@dataclass(frozen=True)
class PeriodTiming:
    period_number: int
    start_time: str | None = None
    end_time: str | None = None
    is_break: bool = False


@dataclass(frozen=True)
class TimeGrid:
    """Active days x periods of one period template.

    ``days`` keeps the template's display order; scheduling walks days in that
    order so generated output is reproducible.
    """

    days: tuple[str, ...]
    periods_per_day: int
    timings: tuple[PeriodTiming, ...] = ()
    template_id: str | None = None
    _breaks: frozenset[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.periods_per_day < 1:
            raise SchedulerError(
                message="Period template must define at least one period per day",
                details={"periods_per_day": self.periods_per_day},
            )
        if not self.days:
            raise SchedulerError(message="Period template has no active days of the week")
        invalid_days = [day for day in self.days if day not in DAY_VALUES]
        if invalid_days:
            raise SchedulerError(
                message=f"Period template references unknown day(s): {', '.join(invalid_days)}",
                details={"days": list(invalid_days)},
            )
        if len(set(self.days)) != len(self.days):
            raise SchedulerError(message="Period template repeats a day of the week")

        numbers = [item.period_number for item in self.timings]
        out_of_range = sorted({n for n in numbers if n < 1 or n > self.periods_per_day})
        if out_of_range:
            raise SchedulerError(
                message=(
                    "Period timings reference periods outside 1.."
                    f"{self.periods_per_day}: {', '.join(map(str, out_of_range))}"
                ),
                details={"periods": out_of_range},
            )
        object.__setattr__(
            self,
            "_breaks",
            frozenset(item.period_number for item in self.timings if item.is_break),
        )

    @classmethod
    def from_template(cls, template) -> "TimeGrid":
        timings = tuple(
            PeriodTiming(
                period_number=int(item["period_number"]),
                start_time=item.get("start_time"),
                end_time=item.get("end_time"),
                is_break=bool(item.get("is_break", False)),
            )
            for item in (template.period_timings or [])
        )
        return cls(
            days=tuple(normalize_day(day) for day in (template.days_of_week or [])),
            periods_per_day=int(template.periods_per_day),
            timings=timings,
            template_id=template.id,
        )

    @property
    def break_periods(self) -> frozenset[int]:
        return self._breaks

    @property
    def teaching_periods(self) -> tuple[int, ...]:
        return tuple(p for p in range(1, self.periods_per_day + 1) if p not in self._breaks)

    def is_break(self, period: int) -> bool:
        return period in self._breaks

    def has_day(self, day: str) -> bool:
        return day in self.days

    def day_index(self, day: str) -> int:
        try:
            return self.days.index(day)
        except ValueError:
            return len(self.days)

    def timing_for(self, period: int) -> PeriodTiming | None:
        for item in self.timings:
            if item.period_number == period:
                return item
        return None

    def slots(self) -> list[tuple[str, int]]:
        return [(day, period) for day in self.days for period in self.teaching_periods]

    def window(self, start_period: int, length: int) -> range:
        return range(start_period, start_period + length)

    def is_valid_start(self, start_period: int, length: int) -> bool:
        if length < 1 or start_period < 1:
            return False
        if start_period + length - 1 > self.periods_per_day:
            return False
        return not any(p in self._breaks for p in self.window(start_period, length))

    def valid_start_periods(self, length: int) -> tuple[int, ...]:
        return tuple(p for p in range(1, self.periods_per_day + 1) if self.is_valid_start(p, length))
