from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from time import perf_counter

from pydantic import ValidationError

from timetabler.core.config import Settings, get_settings
from timetabler.core.exceptions import ConfigurationError, SchedulerError
from timetabler.schemas.batch import Batch
from timetabler.schemas.faculty import Faculty
from timetabler.schemas.room import Room
from timetabler.schemas.settings import SchedulingConstraints
from timetabler.schemas.subject import Subject
from timetabler.schemas.timetable import (
    Assignment,
    FailedSession,
    GenerationResult,
    GenerationStatistics,
    ReservedBooking,
)
from timetabler.services.backtracking import BacktrackingSearch, LoggingSearchObserver, Placement, SearchObserver
from timetabler.services.conflict_service import ConflictService
from timetabler.services.faculty_assignment import FacultyAssignmentResolver
from timetabler.services.ordering import order_by_difficulty
from timetabler.services.session_expander import SessionRequirement, expand_session_requirements
from timetabler.services.time_grid import build_time_grid

logger = logging.getLogger(__name__)


def coerce_constraints(constraints: SchedulingConstraints | Mapping | None) -> SchedulingConstraints:
    if constraints is None:
        return SchedulingConstraints()
    if isinstance(constraints, SchedulingConstraints):
        return constraints
    try:
        return SchedulingConstraints.model_validate(dict(constraints))
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid scheduling constraints",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def _failed(req: SessionRequirement, reason: str) -> FailedSession:
    return FailedSession(
        subject_id=req.subject.id,
        subject_code=req.subject.code,
        batch_id=req.batch.id,
        group=req.group,
        duration=req.duration,
        faculty_id=req.faculty_id,
        reason=reason,
    )


class TimetableGenerator:
    """Runs one generation: grid -> requirements -> faculty -> ordering -> search -> audit.

    An instance keeps no state between calls, so separate generators (or
    separate calls) can run concurrently on different threads.
    """

    def __init__(self, settings: Settings | None = None, observer: SearchObserver | None = None) -> None:
        self.settings = settings or get_settings()
        if observer is None and self.settings.scheduler_trace:
            observer = LoggingSearchObserver()
        self.observer = observer

    def generate(
        self,
        *,
        subjects: list[Subject],
        faculty: list[Faculty],
        rooms: list[Room],
        batches: list[Batch],
        constraints: SchedulingConstraints | Mapping | None = None,
        reservations: list[ReservedBooking] | None = None,
        academic_year: str | None = None,
        semester: int | None = None,
        department: str | None = None,
    ) -> GenerationResult:
        started = perf_counter()
        constraints = coerce_constraints(constraints)
        active_rooms = self._validate_inputs(subjects=subjects, faculty=faculty, rooms=rooms, batches=batches)
        logger.info(
            "Timetable generation start | year=%s semester=%s department=%s subjects=%s faculty=%s rooms=%s batches=%s",
            academic_year,
            semester,
            department,
            len(subjects),
            len(faculty),
            len(active_rooms),
            len(batches),
        )

        grid = build_time_grid(
            constraints,
            {subject.session_duration for subject in subjects},
            step_minutes=self.settings.scheduler_slot_step_minutes,
        )
        requirements = expand_session_requirements(
            batches,
            {subject.id: subject for subject in subjects},
            lab_group_size=self.settings.scheduler_lab_group_size,
        )
        resolution = FacultyAssignmentResolver(faculty).resolve(requirements)
        ordered = order_by_difficulty(resolution.resolved, grid, active_rooms)

        search = BacktrackingSearch(
            constraints=constraints,
            grid=grid,
            rooms=active_rooms,
            faculty=faculty,
            reservations=reservations,
            max_constraint_checks=self.settings.scheduler_max_constraint_checks,
            max_search_seconds=self.settings.scheduler_max_search_seconds,
            observer=self.observer,
        )
        outcome = search.run(ordered)

        schedule = self._to_schedule(outcome.placements, constraints)
        audit = ConflictService(schedule, constraints, active_rooms)
        conflicts = audit.detect_conflicts()

        failed_sessions = [_failed(req, "faculty_unassignable") for req in resolution.unassignable]
        failed_sessions.extend(_failed(req, "unplaceable") for req in outcome.unplaceable)

        statistics = GenerationStatistics(
            total_sessions=len(requirements),
            scheduled_sessions=len(schedule),
            failed_sessions=len(failed_sessions),
            unassignable_sessions=len(resolution.unassignable),
            unplaceable_sessions=len(outcome.unplaceable),
            sessions_per_day=audit.sessions_per_day(),
            faculty_hours=audit.faculty_hours(),
            room_utilization=audit.room_utilization(),
            constraint_checks=outcome.constraint_checks,
            backtracks=outcome.backtracks,
            search_truncated=outcome.truncated,
            generation_time_ms=int((perf_counter() - started) * 1000),
        )
        result = GenerationResult(
            success=not failed_sessions and not conflicts,
            schedule=schedule,
            conflicts=conflicts,
            score=audit.score(),
            statistics=statistics,
            failed_sessions=failed_sessions,
        )
        logger.info(
            "Timetable generation done | success=%s scheduled=%s/%s failed=%s score=%s checks=%s backtracks=%s truncated=%s ms=%s",
            result.success,
            statistics.scheduled_sessions,
            statistics.total_sessions,
            statistics.failed_sessions,
            result.score,
            statistics.constraint_checks,
            statistics.backtracks,
            statistics.search_truncated,
            statistics.generation_time_ms,
        )
        return result

    @staticmethod
    def _validate_inputs(
        *,
        subjects: list[Subject],
        faculty: list[Faculty],
        rooms: list[Room],
        batches: list[Batch],
    ) -> list[Room]:
        if not rooms:
            raise SchedulerError(message="No rooms available for generation")
        active_rooms = [room for room in rooms if room.is_active]
        if not active_rooms:
            raise SchedulerError(message="No active rooms available for generation", details={"rooms": len(rooms)})
        if not faculty:
            raise SchedulerError(message="No faculty available for generation")
        if not batches:
            raise SchedulerError(message="No batches supplied for generation")
        if not subjects:
            raise SchedulerError(message="No subjects supplied for generation")

        for label, items in (("room", rooms), ("faculty", faculty), ("batch", batches), ("subject", subjects)):
            counts = Counter(item.id for item in items)
            duplicates = sorted(item_id for item_id, count in counts.items() if count > 1)
            if duplicates:
                raise SchedulerError(
                    message=f"Duplicate {label} ids in generation input",
                    details={"ids": duplicates},
                )
        return active_rooms

    @staticmethod
    def _to_schedule(placements: list[Placement], constraints: SchedulingConstraints) -> list[Assignment]:
        day_order = constraints.day_index
        ordered = sorted(
            placements,
            key=lambda item: (
                day_order.get(item.slot.day, len(day_order)),
                item.slot.start,
                item.requirement.batch.id,
                item.room.id,
            ),
        )
        return [
            Assignment(
                subject_id=item.requirement.subject.id,
                subject_code=item.requirement.subject.code,
                batch_id=item.requirement.batch.id,
                group=item.requirement.group,
                max_students=item.requirement.max_students,
                faculty_id=item.requirement.faculty_id,
                room_id=item.room.id,
                day=item.slot.day,
                start_time=item.slot.start_time,
                end_time=item.slot.end_time,
                duration=item.slot.duration,
                session_type=item.requirement.session_type,
            )
            for item in ordered
        ]
