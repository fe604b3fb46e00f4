import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetabler.db.base import Base


class GeneratedTimetable(Base):
    __tablename__ = "generated_timetables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    academic_year: Mapped[str | None] = mapped_column(String(20), index=True, nullable=True)
    semester: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    department: Mapped[str | None] = mapped_column(String(200), index=True, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Serialized GenerationResult; the engine never reads it back.
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    # SchedulingConstraints the result was generated under.
    constraints: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
