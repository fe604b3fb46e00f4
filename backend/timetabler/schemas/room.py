from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timetabler.schemas.settings import DayWindow


class RoomKind(str, Enum):
    lecture_hall = "lecture_hall"
    laboratory = "laboratory"
    seminar_room = "seminar_room"
    computer_lab = "computer_lab"
    tutorial_room = "tutorial_room"
    auditorium = "auditorium"


class Facility(str, Enum):
    projector = "projector"
    whiteboard = "whiteboard"
    computer = "computer"
    audio_system = "audio_system"
    video_conferencing = "video_conferencing"
    air_conditioning = "air_conditioning"
    internet = "internet"


class Room(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, max_length=36)
    building: str = Field(min_length=1, max_length=200)
    room_number: str = Field(min_length=1, max_length=50, alias="roomNumber")
    capacity: int = Field(ge=1, le=2000)
    kind: RoomKind = Field(alias="type")
    facilities: frozenset[Facility] = Field(default_factory=frozenset)
    department_restrictions: list[str] = Field(default_factory=list, alias="departmentRestrictions")
    blocked_windows: list[DayWindow] = Field(default_factory=list, max_length=200, alias="blockedWindows")
    is_active: bool = Field(default=True, alias="isActive")

    @field_validator("department_restrictions")
    @classmethod
    def normalize_departments(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]

    @property
    def label(self) -> str:
        return f"{self.building}-{self.room_number}"
