from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timetabler.schemas.settings import DayWindow


class BatchSubject(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject_id: str = Field(min_length=1, max_length=36, alias="subject")
    faculty_id: str | None = Field(default=None, min_length=1, max_length=36, alias="faculty")


class BatchConstraints(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_sessions_per_day: int | None = Field(default=None, ge=1, le=48, alias="maxClassesPerDay")
    blocked_windows: list[DayWindow] = Field(default_factory=list, max_length=200, alias="blockedTimeSlots")


class Batch(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    department: str = Field(min_length=1, max_length=200)
    program_level: Literal["UG", "PG", "PhD"] = Field(default="UG", alias="program")
    semester: int = Field(default=1, ge=1, le=20)
    enrolled_students: int = Field(ge=0, le=2000, alias="enrolledStudents")
    max_capacity: int = Field(default=60, ge=1, le=2000, alias="maxCapacity")
    subjects: list[BatchSubject] = Field(default_factory=list, max_length=100)
    constraints: BatchConstraints = Field(default_factory=BatchConstraints)

    @model_validator(mode="after")
    def validate_enrollment(self) -> "Batch":
        if self.enrolled_students > self.max_capacity:
            raise ValueError("enrolled_students cannot exceed max_capacity")
        return self
