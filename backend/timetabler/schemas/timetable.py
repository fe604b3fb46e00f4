from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timetabler.schemas.settings import DayWindow, parse_time_to_minutes

SessionType = Literal["lecture", "lab", "tutorial", "seminar", "project"]
ConflictKind = Literal["faculty_clash", "room_clash", "batch_clash"]
FailureReason = Literal["faculty_unassignable", "unplaceable"]


class ReservedBooking(DayWindow):
    """Occupancy committed outside this run (another department's timetable, an exam, ...)."""

    room_id: str | None = Field(default=None, alias="roomId")
    faculty_id: str | None = Field(default=None, alias="facultyId")
    batch_id: str | None = Field(default=None, alias="batchId")
    note: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_resource(self) -> "ReservedBooking":
        if not (self.room_id or self.faculty_id or self.batch_id):
            raise ValueError("A reservation must reference a room, a faculty member or a batch")
        return self


class Assignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_code: str
    batch_id: str
    group: str
    max_students: int
    faculty_id: str
    room_id: str
    day: str
    start_time: str
    end_time: str
    duration: int
    session_type: SessionType

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)


class ConflictRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_index: int = Field(ge=0)
    second_index: int = Field(ge=0)
    kind: ConflictKind
    severity: Literal["critical", "high", "medium", "low"] = "critical"
    description: str


class FailedSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_code: str
    batch_id: str
    group: str
    duration: int
    faculty_id: str | None = None
    reason: FailureReason


class GenerationStatistics(BaseModel):
    total_sessions: int = 0
    scheduled_sessions: int = 0
    failed_sessions: int = 0
    unassignable_sessions: int = 0
    unplaceable_sessions: int = 0
    sessions_per_day: dict[str, int] = Field(default_factory=dict)
    faculty_hours: dict[str, float] = Field(default_factory=dict)
    room_utilization: dict[str, float] = Field(default_factory=dict)
    constraint_checks: int = 0
    backtracks: int = 0
    search_truncated: bool = False
    generation_time_ms: int = 0


class GenerationResult(BaseModel):
    success: bool
    schedule: list[Assignment] = Field(default_factory=list)
    conflicts: list[ConflictRecord] = Field(default_factory=list)
    score: int = Field(ge=0, le=100)
    statistics: GenerationStatistics
    failed_sessions: list[FailedSession] = Field(default_factory=list)
