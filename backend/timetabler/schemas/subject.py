from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timetabler.schemas.faculty import Designation
from timetabler.schemas.room import Facility, RoomKind

ALLOWED_SESSION_DURATIONS = (45, 60, 90, 120, 180)


class SubjectKind(str, Enum):
    theory = "theory"
    lab = "lab"
    tutorial = "tutorial"
    seminar = "seminar"
    project = "project"


class ClassroomRequirements(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: RoomKind | None = Field(default=None, alias="type")
    min_capacity: int = Field(default=0, ge=0, le=2000, alias="minCapacity")
    facilities: frozenset[Facility] = Field(default_factory=frozenset)


class FacultyRequirements(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    specializations: list[str] = Field(default_factory=list, alias="specialization")
    min_designation: Designation | None = Field(default=None, alias="minDesignation")

    @field_validator("specializations")
    @classmethod
    def normalize_specializations(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class Subject(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, max_length=36)
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(min_length=1, max_length=200)
    credits: int = Field(default=3, ge=0, le=40)
    kind: SubjectKind = Field(alias="type")
    sessions_per_week: int = Field(ge=1, le=20, alias="sessionsPerWeek")
    session_duration: int = Field(default=60, alias="sessionDuration")
    classroom_requirements: ClassroomRequirements = Field(
        default_factory=ClassroomRequirements,
        alias="classroomRequirements",
    )
    faculty_requirements: FacultyRequirements = Field(
        default_factory=FacultyRequirements,
        alias="facultyRequirements",
    )

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Subject code cannot be empty")
        return code

    @field_validator("session_duration")
    @classmethod
    def validate_session_duration(cls, value: int) -> int:
        if value not in ALLOWED_SESSION_DURATIONS:
            allowed = ", ".join(str(item) for item in ALLOWED_SESSION_DURATIONS)
            raise ValueError(f"session_duration must be one of: {allowed}")
        return value
