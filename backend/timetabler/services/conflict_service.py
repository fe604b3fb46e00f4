from __future__ import annotations

import logging
from collections import defaultdict
from statistics import pvariance
from typing import Dict, List

from timetabler.schemas.room import Room
from timetabler.schemas.settings import SchedulingConstraints, ranges_overlap
from timetabler.schemas.timetable import Assignment, ConflictRecord

logger = logging.getLogger(__name__)

LUNCH_VIOLATION_PENALTY = 2
DAY_VARIANCE_WEIGHT = 0.1
ROOM_SPREAD_WEIGHT = 0.1
GAP_HOUR_PENALTY = 0.5


class ConflictService:
    """Post-search audit of a schedule: residual clashes, quality score and utilization figures.

    Everything here is a pure function of the schedule, so running it twice
    yields identical output.
    """

    def __init__(self, schedule: List[Assignment], constraints: SchedulingConstraints, rooms: List[Room]):
        self.schedule = schedule
        self.constraints = constraints
        self.rooms = [room for room in rooms if room.is_active]
        self.lunch: tuple[int, int] | None = None
        if constraints.lunch_break is not None:
            self.lunch = (constraints.lunch_break.start_minutes, constraints.lunch_break.end_minutes)

    def detect_conflicts(self) -> List[ConflictRecord]:
        conflicts: List[ConflictRecord] = []

        # Bucket by day so only same-day pairs are compared.
        indices_by_day: Dict[str, List[int]] = defaultdict(list)
        for index, item in enumerate(self.schedule):
            indices_by_day[item.day].append(index)

        for day, indices in indices_by_day.items():
            n = len(indices)
            for i in range(n):
                first = self.schedule[indices[i]]
                start1, end1 = first.start_minutes, first.end_minutes
                for j in range(i + 1, n):
                    second = self.schedule[indices[j]]
                    if not ranges_overlap(start1, end1, second.start_minutes, second.end_minutes):
                        continue
                    window = f"{day} {first.start_time}-{first.end_time} / {second.start_time}-{second.end_time}"
                    if first.faculty_id == second.faculty_id:
                        conflicts.append(ConflictRecord(
                            first_index=indices[i],
                            second_index=indices[j],
                            kind="faculty_clash",
                            description=f"Faculty {first.faculty_id} double-booked for {first.subject_code} and {second.subject_code} on {window}",
                        ))
                    if first.room_id == second.room_id:
                        conflicts.append(ConflictRecord(
                            first_index=indices[i],
                            second_index=indices[j],
                            kind="room_clash",
                            description=f"Room {first.room_id} double-booked for {first.subject_code} and {second.subject_code} on {window}",
                        ))
                    if first.batch_id == second.batch_id:
                        conflicts.append(ConflictRecord(
                            first_index=indices[i],
                            second_index=indices[j],
                            kind="batch_clash",
                            description=f"Batch {first.batch_id} double-booked for {first.subject_code} and {second.subject_code} on {window}",
                        ))

        for conflict in conflicts:
            logger.error(
                "Residual conflict | kind=%s first=%s second=%s | %s",
                conflict.kind,
                conflict.first_index,
                conflict.second_index,
                conflict.description,
            )
        return conflicts

    def lunch_violations(self) -> int:
        if self.lunch is None:
            return 0
        return sum(
            1 for item in self.schedule
            if ranges_overlap(item.start_minutes, item.end_minutes, *self.lunch)
        )

    def sessions_per_day(self) -> Dict[str, int]:
        counts = {day: 0 for day in self.constraints.working_days}
        for item in self.schedule:
            counts[item.day] = counts.get(item.day, 0) + 1
        return counts

    def idle_gap_minutes(self) -> int:
        """Minutes of idle time between a batch's consecutive sessions beyond the break allowance."""
        threshold = self.constraints.break_duration_minutes
        spans: Dict[tuple[str, str], List[tuple[int, int]]] = defaultdict(list)
        for item in self.schedule:
            spans[(item.batch_id, item.day)].append((item.start_minutes, item.end_minutes))

        total = 0
        for day_spans in spans.values():
            day_spans.sort()
            for (_, prev_end), (next_start, _) in zip(day_spans, day_spans[1:]):
                gap = next_start - prev_end
                if gap <= 0:
                    continue
                if self.lunch is not None and ranges_overlap(prev_end, next_start, *self.lunch):
                    gap -= min(next_start, self.lunch[1]) - max(prev_end, self.lunch[0])
                total += max(0, gap - threshold)
        return total

    def score(self) -> int:
        score = 100.0
        score -= self.lunch_violations() * LUNCH_VIOLATION_PENALTY

        counts = list(self.sessions_per_day().values())
        if len(counts) > 1:
            score -= pvariance(counts) * DAY_VARIANCE_WEIGHT

        if self.rooms:
            used = {item.room_id for item in self.schedule}
            score += (len(used) / len(self.rooms)) * ROOM_SPREAD_WEIGHT * 100

        score -= self.idle_gap_minutes() / 60 * GAP_HOUR_PENALTY
        return int(round(max(0.0, min(100.0, score))))

    def faculty_hours(self) -> Dict[str, float]:
        hours: Dict[str, float] = defaultdict(float)
        for item in self.schedule:
            hours[item.faculty_id] += item.duration / 60
        return {faculty_id: round(value, 2) for faculty_id, value in hours.items()}

    def room_utilization(self) -> Dict[str, float]:
        day_start = self.constraints.working_hours.start_minutes
        day_end = self.constraints.working_hours.end_minutes
        teachable = day_end - day_start
        if self.lunch is not None:
            teachable -= max(0, min(day_end, self.lunch[1]) - max(day_start, self.lunch[0]))
        weekly_minutes = max(1, teachable) * len(self.constraints.working_days)

        booked: Dict[str, int] = {room.id: 0 for room in self.rooms}
        for item in self.schedule:
            booked[item.room_id] = booked.get(item.room_id, 0) + item.duration
        return {room_id: round(minutes * 100 / weekly_minutes, 2) for room_id, minutes in booked.items()}
