import logging
from time import perf_counter

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db, get_generator
from timetabler.schemas.generator import (
    GeneratedTimetableOut,
    GeneratedTimetableSummary,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    TimetableConflictReport,
)
from timetabler.services.repository import TimetableRepository
from timetabler.services.timetable_generator import TimetableGenerator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
    generator: TimetableGenerator = Depends(get_generator),
) -> GenerateTimetableResponse:
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION REQUEST | department=%s | year=%s | semester=%s | batches=%s | persist=%s",
        payload.department,
        payload.academic_year,
        payload.semester,
        len(payload.batches),
        payload.persist,
    )
    try:
        result = generator.generate(
            subjects=payload.subjects,
            faculty=payload.faculty,
            rooms=payload.rooms,
            batches=payload.batches,
            constraints=payload.constraints,
            reservations=payload.reservations,
            academic_year=payload.academic_year,
            semester=payload.semester,
            department=payload.department,
        )
        timetable_id: str | None = None
        if payload.persist:
            record = TimetableRepository(db).save(
                result,
                name=payload.name,
                constraints=payload.constraints,
                academic_year=payload.academic_year,
                semester=payload.semester,
                department=payload.department,
            )
            timetable_id = record.id

        logger.info(
            "TIMETABLE GENERATION COMPLETE | department=%s | timetable_id=%s | success=%s | scheduled=%s | failed=%s | wall_ms=%s",
            payload.department,
            timetable_id,
            result.success,
            len(result.schedule),
            len(result.failed_sessions),
            int((perf_counter() - started) * 1000),
        )
        return GenerateTimetableResponse(timetable_id=timetable_id, result=result)
    except Exception:
        logger.exception(
            "TIMETABLE GENERATION FAILED | department=%s | year=%s | semester=%s | wall_ms=%s",
            payload.department,
            payload.academic_year,
            payload.semester,
            int((perf_counter() - started) * 1000),
        )
        raise


@router.get("", response_model=list[GeneratedTimetableSummary])
def list_timetables(
    department: str | None = Query(default=None, max_length=200),
    academic_year: str | None = Query(default=None, max_length=20),
    semester: int | None = Query(default=None, ge=1, le=20),
    db: Session = Depends(get_db),
) -> list[GeneratedTimetableSummary]:
    return TimetableRepository(db).list(
        department=department,
        academic_year=academic_year,
        semester=semester,
    )


@router.get("/{timetable_id}", response_model=GeneratedTimetableOut)
def get_timetable(timetable_id: str, db: Session = Depends(get_db)) -> GeneratedTimetableOut:
    return TimetableRepository(db).get(timetable_id)


@router.get("/{timetable_id}/conflicts", response_model=TimetableConflictReport)
def get_timetable_conflicts(timetable_id: str, db: Session = Depends(get_db)) -> TimetableConflictReport:
    report = TimetableRepository(db).conflict_report(timetable_id)
    logger.info(
        "TIMETABLE CONFLICT CHECK | timetable_id=%s | total=%s | critical=%s",
        timetable_id,
        report.summary.total,
        report.summary.critical,
    )
    return report


@router.delete("/{timetable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_timetable(timetable_id: str, db: Session = Depends(get_db)) -> None:
    TimetableRepository(db).deactivate(timetable_id)
