from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DAY_ORDER = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
DAY_VALUES = set(DAY_ORDER)

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DEFAULT_WORKING_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
DEFAULT_MAX_CLASSES_PER_DAY = 8
DEFAULT_BREAK_DURATION_MINUTES = 15


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str) -> str:
    cleaned = value.strip().capitalize()
    day = DAY_SHORT_MAP.get(cleaned, cleaned)
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {value}")
    return day


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap; ranges that only touch do not overlap."""
    return start_a < end_b and start_b < end_a


class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeWindow":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)


class DayWindow(TimeWindow):
    day: str

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)


class SchedulingConstraints(BaseModel):
    """Per-request constraint options. Missing options fall back to the defaults below."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    working_days: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS), alias="workingDays")
    working_hours: TimeWindow = Field(
        default_factory=lambda: TimeWindow(start_time="09:00", end_time="17:00"),
        alias="workingHours",
    )
    lunch_break: TimeWindow | None = Field(
        default_factory=lambda: TimeWindow(start_time="12:30", end_time="13:30"),
        alias="lunchBreak",
    )
    max_classes_per_day: int = Field(default=DEFAULT_MAX_CLASSES_PER_DAY, ge=1, le=48, alias="maxClassesPerDay")
    break_duration_minutes: int = Field(
        default=DEFAULT_BREAK_DURATION_MINUTES,
        ge=0,
        le=240,
        alias="breakDurationMinutes",
    )

    @field_validator("working_days")
    @classmethod
    def normalize_working_days(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        days: list[str] = []
        for item in value:
            day = normalize_day(item)
            if day in seen:
                continue
            seen.add(day)
            days.append(day)
        if not days:
            raise ValueError("working_days cannot be empty")
        return days

    @property
    def day_index(self) -> dict[str, int]:
        return {day: index for index, day in enumerate(self.working_days)}
