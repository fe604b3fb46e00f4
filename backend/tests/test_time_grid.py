import pytest

from timetabler.core.exceptions import ConfigurationError
from timetabler.schemas.settings import SchedulingConstraints, TimeWindow
from timetabler.services.time_grid import LUNCH_SLOT_LABEL, build_time_grid

from factories import two_day_constraints


def test_default_week_hourly_slots():
    grid = build_time_grid(SchedulingConstraints(), {60})

    # 29 quarter-hour starts between 09:00 and 16:00, 7 of them collide with 12:30-13:30
    assert len(grid.slots_for(60)) == 22 * 5
    monday = [slot for slot in grid.slots if slot.day == "Monday"]
    assert monday[0].start_time == "09:00"
    assert monday[-1].end_time == "17:00"
    assert any(slot.start_time == "11:30" and slot.end_time == "12:30" for slot in monday)
    assert any(slot.start_time == "13:30" for slot in monday)


def test_no_slot_touches_lunch_or_leaves_working_hours():
    constraints = SchedulingConstraints()
    grid = build_time_grid(constraints, {45, 60, 90, 120})

    lunch = constraints.lunch_break
    for slot in grid.slots:
        assert not slot.overlaps(lunch.start_minutes, lunch.end_minutes)
        assert slot.start >= constraints.working_hours.start_minutes
        assert slot.end <= constraints.working_hours.end_minutes
        assert slot.end - slot.start == slot.duration


def test_slots_follow_working_day_order():
    constraints = SchedulingConstraints(working_days=["Wed", "monday", "Wednesday"])
    grid = build_time_grid(constraints, {60}, step_minutes=60)

    assert constraints.working_days == ["Wednesday", "Monday"]
    days = [slot.day for slot in grid.slots]
    assert days == sorted(days, key=constraints.working_days.index)
    starts = [slot.start for slot in grid.slots if slot.day == "Wednesday"]
    assert starts == sorted(starts)


def test_lunch_slots_are_labelled_per_day():
    grid = build_time_grid(two_day_constraints(), {60}, step_minutes=60)

    assert len(grid.slots_for(60)) == 10
    assert [slot.day for slot in grid.lunch_slots] == ["Monday", "Tuesday"]
    lunch = grid.lunch_for("Tuesday")
    assert lunch.label == LUNCH_SLOT_LABEL
    assert (lunch.start_time, lunch.end_time) == ("12:00", "13:00")
    assert grid.lunch_for("Friday") is None


def test_grid_without_lunch_break():
    constraints = two_day_constraints(lunch_break=None)
    grid = build_time_grid(constraints, {60}, step_minutes=60)

    assert len(grid.slots_for(60)) == 12
    assert grid.lunch_slots == ()


def test_duration_longer_than_day_yields_no_slots():
    constraints = SchedulingConstraints(
        working_hours=TimeWindow(start_time="09:00", end_time="10:00"),
        lunch_break=None,
    )
    grid = build_time_grid(constraints, {120})

    assert grid.slots_for(120) == ()
    assert grid.slots_for(45) == ()


def test_invalid_step_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        build_time_grid(SchedulingConstraints(), {60}, step_minutes=0)


def test_non_positive_duration_raises_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        build_time_grid(SchedulingConstraints(), {60, 0})
    assert exc.value.details == {"durations": [0]}
    assert exc.value.status_code == 400


def test_time_window_rejects_reversed_hours():
    with pytest.raises(ValueError):
        TimeWindow(start_time="17:00", end_time="09:00")
