from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from timetabler.core.exceptions import ConfigurationError
from timetabler.schemas.settings import SchedulingConstraints, minutes_to_time, ranges_overlap

logger = logging.getLogger(__name__)

LUNCH_SLOT_LABEL = "Lunch Break"


@dataclass(frozen=True)
class TimeSlot:
    day: str
    start: int
    end: int
    duration: int
    label: str | None = None

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    def overlaps(self, start: int, end: int) -> bool:
        return ranges_overlap(self.start, self.end, start, end)


@dataclass(frozen=True)
class TimeGrid:
    slots: tuple[TimeSlot, ...]
    lunch_slots: tuple[TimeSlot, ...]
    by_duration: dict[int, tuple[TimeSlot, ...]] = field(default_factory=dict)

    def slots_for(self, duration: int) -> tuple[TimeSlot, ...]:
        return self.by_duration.get(duration, ())

    def lunch_for(self, day: str) -> TimeSlot | None:
        for slot in self.lunch_slots:
            if slot.day == day:
                return slot
        return None


def build_time_grid(
    constraints: SchedulingConstraints,
    durations: Iterable[int],
    *,
    step_minutes: int = 15,
) -> TimeGrid:
    """Enumerate every candidate slot for the week.

    Slots are produced per working day, per duration, at ``step_minutes``
    offsets from the start of the working day. A slot survives only if it ends
    within working hours and does not overlap the lunch window. The result is
    ordered by working day, then start, then duration.
    """
    day_start = constraints.working_hours.start_minutes
    day_end = constraints.working_hours.end_minutes
    if day_start >= day_end:
        raise ConfigurationError(
            "working_hours start must be before end",
            details={
                "start_time": constraints.working_hours.start_time,
                "end_time": constraints.working_hours.end_time,
            },
        )
    if step_minutes <= 0:
        raise ConfigurationError("slot step must be a positive number of minutes", details={"step": step_minutes})

    lunch = constraints.lunch_break
    lunch_bounds: tuple[int, int] | None = None
    if lunch is not None:
        lunch_bounds = (lunch.start_minutes, lunch.end_minutes)
        if lunch_bounds[0] >= lunch_bounds[1]:
            raise ConfigurationError(
                "lunch_break start must be before end",
                details={"start_time": lunch.start_time, "end_time": lunch.end_time},
            )

    unique_durations = sorted(set(durations))
    invalid = [item for item in unique_durations if item <= 0]
    if invalid:
        raise ConfigurationError("session durations must be positive", details={"durations": invalid})

    slots: list[TimeSlot] = []
    lunch_slots: list[TimeSlot] = []
    for day in constraints.working_days:
        day_slots: list[TimeSlot] = []
        for duration in unique_durations:
            cursor = day_start
            while cursor + duration <= day_end:
                end = cursor + duration
                if lunch_bounds is None or not ranges_overlap(cursor, end, *lunch_bounds):
                    day_slots.append(TimeSlot(day=day, start=cursor, end=end, duration=duration))
                cursor += step_minutes
        day_slots.sort(key=lambda item: (item.start, item.duration))
        slots.extend(day_slots)
        if lunch_bounds is not None:
            lunch_slots.append(
                TimeSlot(
                    day=day,
                    start=lunch_bounds[0],
                    end=lunch_bounds[1],
                    duration=lunch_bounds[1] - lunch_bounds[0],
                    label=LUNCH_SLOT_LABEL,
                )
            )

    by_duration: dict[int, list[TimeSlot]] = {duration: [] for duration in unique_durations}
    for slot in slots:
        by_duration[slot.duration].append(slot)

    logger.debug(
        "Time grid built | days=%s durations=%s slots=%s step=%s",
        len(constraints.working_days),
        unique_durations,
        len(slots),
        step_minutes,
    )
    return TimeGrid(
        slots=tuple(slots),
        lunch_slots=tuple(lunch_slots),
        by_duration={duration: tuple(items) for duration, items in by_duration.items()},
    )
