import logging

import pytest

from timetabler.schemas.settings import SchedulingConstraints
from timetabler.schemas.timetable import Assignment
from timetabler.services.conflict_service import ConflictService

from factories import make_room


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


@pytest.fixture
def rooms():
    return [make_room("r1"), make_room("r2"), make_room("r3", is_active=False)]


def test_detects_each_clash_kind(rooms, caplog):
    schedule = [
        _assignment(),
        _assignment(subject_id="c2", subject_code="C2", start_time="09:30", end_time="10:30"),
        _assignment(batch_id="b2", faculty_id="f2", room_id="r2", start_time="11:00", end_time="12:00"),
    ]
    service = ConflictService(schedule, SchedulingConstraints(), rooms)

    with caplog.at_level(logging.ERROR):
        conflicts = service.detect_conflicts()

    assert sorted(conflict.kind for conflict in conflicts) == ["batch_clash", "faculty_clash", "room_clash"]
    assert all((conflict.first_index, conflict.second_index) == (0, 1) for conflict in conflicts)
    assert all(conflict.severity == "critical" for conflict in conflicts)
    assert "Residual conflict" in caplog.text


def test_touching_sessions_and_other_days_do_not_clash(rooms):
    schedule = [
        _assignment(),
        _assignment(start_time="10:00", end_time="11:00"),
        _assignment(day="Tuesday"),
    ]

    assert ConflictService(schedule, SchedulingConstraints(), rooms).detect_conflicts() == []


def test_score_rewards_room_spread_and_is_idempotent(rooms):
    schedule = [
        _assignment(day=day, start_time="09:00", end_time="10:00", room_id=room_id)
        for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
        for room_id in ("r1",)
    ]
    service = ConflictService(schedule, SchedulingConstraints(), rooms)

    # flat days, no gaps, one of two active rooms used
    assert service.score() == 100
    assert service.score() == service.score()
    assert service.detect_conflicts() == service.detect_conflicts()


def test_lunch_violations_and_gaps_lower_the_score():
    constraints = SchedulingConstraints()
    rooms = [make_room(f"r{index}") for index in range(1, 11)]
    schedule = [
        _assignment(start_time="12:30", end_time="13:30"),
        _assignment(start_time="09:00", end_time="10:00", room_id="r2"),
        _assignment(start_time="15:00", end_time="16:00", room_id="r2"),
    ]
    service = ConflictService(schedule, constraints, rooms)

    assert service.lunch_violations() == 1
    # 09-10 -> 12:30 is 150 min minus the 15 min break; 13:30 -> 15:00 is 90 min minus 15
    assert service.idle_gap_minutes() == 135 + 75
    # 100 - 2 (lunch) - 0.144 (day variance) + 2 (2 of 10 rooms) - 1.75 (gaps)
    assert service.score() == 98


def test_gap_across_lunch_excludes_the_lunch_window(rooms):
    schedule = [
        _assignment(start_time="11:30", end_time="12:30"),
        _assignment(start_time="13:30", end_time="14:30"),
    ]

    assert ConflictService(schedule, SchedulingConstraints(), rooms).idle_gap_minutes() == 0


def test_sessions_per_day_lists_every_working_day(rooms):
    schedule = [_assignment(), _assignment(day="Wednesday", start_time="10:00", end_time="11:00")]

    counts = ConflictService(schedule, SchedulingConstraints(), rooms).sessions_per_day()

    assert counts == {"Monday": 1, "Tuesday": 0, "Wednesday": 1, "Thursday": 0, "Friday": 0}


def test_faculty_hours_and_room_utilization(rooms):
    schedule = [
        _assignment(duration=90, start_time="09:00", end_time="10:30"),
        _assignment(faculty_id="f2", batch_id="b2", room_id="r2", start_time="14:00", end_time="15:00"),
    ]
    service = ConflictService(schedule, SchedulingConstraints(), rooms)

    assert service.faculty_hours() == {"f1": 1.5, "f2": 1.0}
    # 7 teachable hours a day over 5 days
    assert service.room_utilization() == {"r1": round(90 * 100 / 2100, 2), "r2": round(60 * 100 / 2100, 2)}


def test_empty_schedule_scores_without_errors(rooms):
    service = ConflictService([], SchedulingConstraints(), rooms)

    assert service.detect_conflicts() == []
    assert service.score() == 100
    assert service.room_utilization() == {"r1": 0.0, "r2": 0.0}
