from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timetabler.schemas.settings import DayWindow, TimeWindow, normalize_day


class Designation(str, Enum):
    adjunct = "Adjunct"
    lecturer = "Lecturer"
    assistant_professor = "Assistant Professor"
    associate_professor = "Associate Professor"
    professor = "Professor"


class Faculty(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    departments: list[str] = Field(min_length=1, max_length=20)
    specializations: list[str] = Field(default_factory=list, max_length=50, alias="specialization")
    designation: Designation = Designation.assistant_professor
    weekly_load_limit: float = Field(default=18, ge=0, le=80, alias="weeklyLoadLimit")
    max_sessions_per_day: int = Field(default=6, ge=1, le=24, alias="maxClassesPerDay")
    # Optional working window per day; days that are absent are unconstrained.
    availability: dict[str, TimeWindow] = Field(default_factory=dict)
    blocked_windows: list[DayWindow] = Field(default_factory=list, max_length=200, alias="unavailableSlots")

    @field_validator("departments", "specializations")
    @classmethod
    def strip_tags(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]

    @field_validator("availability")
    @classmethod
    def normalize_availability_days(cls, value: dict[str, TimeWindow]) -> dict[str, TimeWindow]:
        return {normalize_day(day): window for day, window in value.items()}
