from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetabler.core.exceptions import ResourceNotFoundError
from timetabler.models.timetable import GeneratedTimetable
from timetabler.schemas.generator import (
    ConflictSeveritySummary,
    GeneratedTimetableOut,
    GeneratedTimetableSummary,
    TimetableConflictReport,
)
from timetabler.schemas.settings import SchedulingConstraints
from timetabler.schemas.timetable import GenerationResult
from timetabler.services.conflict_service import ConflictService

logger = logging.getLogger(__name__)

DEFAULT_TIMETABLE_NAME = "Generated timetable"


def default_timetable_name(
    department: str | None = None,
    academic_year: str | None = None,
    semester: int | None = None,
) -> str:
    parts = [department, academic_year, f"Semester {semester}" if semester is not None else None]
    label = " ".join(part for part in parts if part)
    return f"{label} timetable" if label else DEFAULT_TIMETABLE_NAME


class TimetableRepository:
    """Persists generation results. The engine itself never touches this layer."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(
        self,
        result: GenerationResult,
        *,
        name: str | None = None,
        constraints: SchedulingConstraints | None = None,
        academic_year: str | None = None,
        semester: int | None = None,
        department: str | None = None,
    ) -> GeneratedTimetable:
        record = GeneratedTimetable(
            name=name or default_timetable_name(department, academic_year, semester),
            academic_year=academic_year,
            semester=semester,
            department=department,
            success=result.success,
            score=result.score,
            payload=result.model_dump(mode="json"),
            constraints=constraints.model_dump(mode="json") if constraints is not None else None,
            is_active=True,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(
            "Stored generated timetable | id=%s name=%s department=%s sessions=%s success=%s",
            record.id,
            record.name,
            department,
            len(result.schedule),
            result.success,
        )
        return record

    def _active_record(self, timetable_id: str) -> GeneratedTimetable:
        record = self.db.get(GeneratedTimetable, timetable_id)
        if record is None or not record.is_active:
            raise ResourceNotFoundError("Timetable", timetable_id)
        return record

    @staticmethod
    def _constraints_of(record: GeneratedTimetable) -> SchedulingConstraints | None:
        if record.constraints is None:
            return None
        return SchedulingConstraints.model_validate(record.constraints)

    def get(self, timetable_id: str) -> GeneratedTimetableOut:
        record = self._active_record(timetable_id)
        summary = GeneratedTimetableSummary.model_validate(record)
        return GeneratedTimetableOut(
            **summary.model_dump(),
            constraints=self._constraints_of(record),
            result=GenerationResult.model_validate(record.payload),
        )

    def list(
        self,
        *,
        department: str | None = None,
        academic_year: str | None = None,
        semester: int | None = None,
    ) -> list[GeneratedTimetableSummary]:
        query = select(GeneratedTimetable).where(GeneratedTimetable.is_active.is_(True))
        if department is not None:
            query = query.where(GeneratedTimetable.department == department)
        if academic_year is not None:
            query = query.where(GeneratedTimetable.academic_year == academic_year)
        if semester is not None:
            query = query.where(GeneratedTimetable.semester == semester)
        query = query.order_by(GeneratedTimetable.created_at.desc(), GeneratedTimetable.id)
        rows = self.db.execute(query).scalars().all()
        return [GeneratedTimetableSummary.model_validate(row) for row in rows]

    def deactivate(self, timetable_id: str) -> None:
        """Soft delete: the row stays, but reads treat it as missing."""
        record = self._active_record(timetable_id)
        record.is_active = False
        self.db.commit()
        logger.info("Deactivated generated timetable | id=%s name=%s", record.id, record.name)

    def conflict_report(self, timetable_id: str) -> TimetableConflictReport:
        """Re-run clash detection over a stored schedule."""
        record = self._active_record(timetable_id)
        result = GenerationResult.model_validate(record.payload)
        constraints = self._constraints_of(record) or SchedulingConstraints()
        # Clash detection only needs the schedule; room data is not stored.
        conflicts = ConflictService(result.schedule, constraints, []).detect_conflicts()

        summary = ConflictSeveritySummary(
            total=len(conflicts),
            **Counter(conflict.severity for conflict in conflicts),
        )
        return TimetableConflictReport(timetable_id=record.id, conflicts=conflicts, summary=summary)
