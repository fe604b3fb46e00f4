from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from timetabler.schemas.batch import Batch
from timetabler.schemas.room import RoomKind
from timetabler.schemas.subject import Subject, SubjectKind

logger = logging.getLogger(__name__)

WHOLE_BATCH_GROUP = "All"
DEFAULT_LAB_GROUP_SIZE = 30
DEFAULT_ROOM_KIND = RoomKind.lecture_hall

SESSION_TYPE_BY_SUBJECT_KIND = {
    SubjectKind.theory: "lecture",
    SubjectKind.lab: "lab",
    SubjectKind.tutorial: "tutorial",
    SubjectKind.seminar: "seminar",
    SubjectKind.project: "project",
}


@dataclass(frozen=True)
class SessionRequirement:
    request_id: int
    subject: Subject
    batch: Batch
    group: str
    max_students: int
    duration: int
    priority: int
    preassigned_faculty_id: str | None = None
    faculty_id: str | None = None

    @property
    def department(self) -> str:
        return self.batch.department

    @property
    def session_type(self) -> str:
        return SESSION_TYPE_BY_SUBJECT_KIND[self.subject.kind]

    @property
    def hours(self) -> float:
        return self.duration / 60.0

    def describe(self) -> str:
        return f"{self.subject.code}/{self.batch.name}/{self.group}#{self.request_id}"


def requirement_priority(subject: Subject, batch_size: int) -> int:
    priority = 0
    if subject.kind == SubjectKind.lab:
        priority += 3

    if subject.session_duration >= 120:
        priority += 2
    elif subject.session_duration >= 90:
        priority += 1

    if batch_size > 60:
        priority += 2
    elif batch_size > 30:
        priority += 1

    required_kind = subject.classroom_requirements.kind
    if required_kind is not None and required_kind != DEFAULT_ROOM_KIND:
        priority += 2

    if len(subject.classroom_requirements.facilities) > 2:
        priority += 1
    return priority


def split_lab_groups(enrolled: int, group_size: int) -> list[tuple[str, int]]:
    """Return ``(label, students)`` pairs; groups are filled up to ``group_size`` in order."""
    group_count = math.ceil(enrolled / group_size)
    groups: list[tuple[str, int]] = []
    remaining = enrolled
    for index in range(group_count):
        size = min(group_size, remaining)
        groups.append((f"Group {index + 1}", size))
        remaining -= size
    return groups


def expand_session_requirements(
    batches: list[Batch],
    subjects_by_id: dict[str, Subject],
    *,
    lab_group_size: int = DEFAULT_LAB_GROUP_SIZE,
) -> list[SessionRequirement]:
    requirements: list[SessionRequirement] = []
    for batch in batches:
        for entry in batch.subjects:
            subject = subjects_by_id.get(entry.subject_id)
            if subject is None:
                logger.warning(
                    "Batch %s references unknown subject %s; skipping",
                    batch.name,
                    entry.subject_id,
                )
                continue

            # Priority reflects the whole batch even when the lab is split.
            priority = requirement_priority(subject, batch.enrolled_students)
            if subject.kind == SubjectKind.lab and batch.enrolled_students > lab_group_size:
                groups = split_lab_groups(batch.enrolled_students, lab_group_size)
            else:
                groups = [(WHOLE_BATCH_GROUP, batch.enrolled_students)]

            for group_label, group_size in groups:
                for _ in range(subject.sessions_per_week):
                    requirements.append(
                        SessionRequirement(
                            request_id=len(requirements),
                            subject=subject,
                            batch=batch,
                            group=group_label,
                            max_students=group_size,
                            duration=subject.session_duration,
                            priority=priority,
                            preassigned_faculty_id=entry.faculty_id,
                        )
                    )
            if len(groups) > 1:
                logger.info(
                    "Lab split | subject=%s batch=%s enrolled=%s groups=%s",
                    subject.code,
                    batch.name,
                    batch.enrolled_students,
                    len(groups),
                )
    return requirements
