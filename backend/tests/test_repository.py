import pytest

from timetabler.core.exceptions import ResourceNotFoundError
from timetabler.models.timetable import GeneratedTimetable
from timetabler.schemas.settings import SchedulingConstraints
from timetabler.schemas.timetable import Assignment, GenerationResult, GenerationStatistics
from timetabler.services.repository import DEFAULT_TIMETABLE_NAME, TimetableRepository, default_timetable_name


def _assignment(**overrides):
    values = {
        "subject_id": "c1",
        "subject_code": "C1",
        "batch_id": "b1",
        "group": "All",
        "max_students": 40,
        "faculty_id": "f1",
        "room_id": "r1",
        "day": "Monday",
        "start_time": "09:00",
        "end_time": "10:00",
        "duration": 60,
        "session_type": "lecture",
    }
    values.update(overrides)
    return Assignment(**values)


def _result(schedule):
    return GenerationResult(success=True, schedule=schedule, score=90, statistics=GenerationStatistics())


def test_conflict_report_rechecks_stored_schedule(db_session):
    # two batches sharing a faculty member and a room at the same hour
    schedule = [_assignment(), _assignment(batch_id="b2", subject_id="c2", subject_code="C2")]
    repository = TimetableRepository(db_session)
    record = repository.save(_result(schedule), name="clashing", constraints=SchedulingConstraints())

    report = repository.conflict_report(record.id)

    assert sorted(conflict.kind for conflict in report.conflicts) == ["faculty_clash", "room_clash"]
    assert report.summary.total == 2
    assert report.summary.critical == 2
    assert report.summary.high == 0


def test_conflict_report_without_stored_constraints(db_session):
    repository = TimetableRepository(db_session)
    record = repository.save(_result([_assignment()]))

    assert record.constraints is None
    assert repository.get(record.id).constraints is None
    assert repository.conflict_report(record.id).summary.total == 0


def test_deactivate_keeps_the_row(db_session):
    repository = TimetableRepository(db_session)
    record = repository.save(_result([]), department="CSE")

    repository.deactivate(record.id)

    assert db_session.get(GeneratedTimetable, record.id).is_active is False
    assert repository.list(department="CSE") == []
    with pytest.raises(ResourceNotFoundError):
        repository.get(record.id)


def test_default_names():
    assert default_timetable_name("ECE", None, 5) == "ECE Semester 5 timetable"
    assert default_timetable_name() == DEFAULT_TIMETABLE_NAME
