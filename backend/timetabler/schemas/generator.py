from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timetabler.schemas.batch import Batch
from timetabler.schemas.faculty import Faculty
from timetabler.schemas.room import Room
from timetabler.schemas.settings import SchedulingConstraints
from timetabler.schemas.subject import Subject
from timetabler.schemas.timetable import ConflictRecord, GenerationResult, ReservedBooking


class GenerateTimetableRequest(BaseModel):
    """Input snapshot for one generation run. The caller owns consistency of the snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    academic_year: str | None = Field(default=None, alias="academicYear")
    semester: int | None = Field(default=None, ge=1, le=20)
    department: str | None = Field(default=None, max_length=200)
    subjects: list[Subject] = Field(default_factory=list, max_length=500)
    faculty: list[Faculty] = Field(default_factory=list, max_length=1000)
    rooms: list[Room] = Field(default_factory=list, max_length=1000)
    batches: list[Batch] = Field(default_factory=list, max_length=500)
    constraints: SchedulingConstraints = Field(default_factory=SchedulingConstraints)
    reservations: list[ReservedBooking] = Field(default_factory=list, max_length=5000)
    persist: bool = True

    @field_validator("academic_year")
    @classmethod
    def normalize_academic_year(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        if not re.match(r"^\d{4}\s*-\s*\d{2,4}$", cleaned):
            raise ValueError("academic_year must follow YYYY-YYYY or YYYY-YY format")
        return cleaned.replace(" ", "")


class GenerateTimetableResponse(BaseModel):
    timetable_id: str | None = None
    result: GenerationResult


class GeneratedTimetableSummary(BaseModel):
    id: str
    name: str
    academic_year: str | None = None
    semester: int | None = None
    department: str | None = None
    success: bool
    score: int
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class GeneratedTimetableOut(GeneratedTimetableSummary):
    constraints: SchedulingConstraints | None = None
    result: GenerationResult


class ConflictSeveritySummary(BaseModel):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class TimetableConflictReport(BaseModel):
    timetable_id: str
    conflicts: list[ConflictRecord] = Field(default_factory=list)
    summary: ConflictSeveritySummary
