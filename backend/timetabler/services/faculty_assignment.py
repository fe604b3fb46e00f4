from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from timetabler.schemas.faculty import Faculty
from timetabler.services.session_expander import SessionRequirement
from timetabler.services.workload import FacultyLoadLedger, designation_meets, specialization_score

logger = logging.getLogger(__name__)


@dataclass
class FacultyResolution:
    resolved: list[SessionRequirement] = field(default_factory=list)
    unassignable: list[SessionRequirement] = field(default_factory=list)


class FacultyAssignmentResolver:
    """Binds each session requirement to one faculty member within weekly load budgets."""

    def __init__(self, faculty: list[Faculty]) -> None:
        self.faculty = list(faculty)
        self.faculty_by_id = {item.id: item for item in self.faculty}
        self.ledger = FacultyLoadLedger(self.faculty)

    def resolve(self, requirements: list[SessionRequirement]) -> FacultyResolution:
        resolution = FacultyResolution()
        for req in requirements:
            faculty_id = self._resolve_one(req)
            if faculty_id is None:
                resolution.unassignable.append(req)
                continue
            self.ledger.charge(faculty_id, req.hours)
            resolution.resolved.append(replace(req, faculty_id=faculty_id))

        logger.info(
            "Faculty resolution | resolved=%s unassignable=%s",
            len(resolution.resolved),
            len(resolution.unassignable),
        )
        return resolution

    def _resolve_one(self, req: SessionRequirement) -> str | None:
        if req.preassigned_faculty_id is not None:
            return self._accept_preassigned(req)

        candidates = self.eligible_candidates(req)
        if not candidates:
            logger.warning(
                "No eligible faculty | session=%s department=%s specializations=%s hours=%.2f",
                req.describe(),
                req.department,
                req.subject.faculty_requirements.specializations,
                req.hours,
            )
            return None

        required_tags = req.subject.faculty_requirements.specializations
        order = {item.id: index for index, item in enumerate(self.faculty)}
        best = min(
            candidates,
            key=lambda item: (
                self.ledger.load(item.id),
                -specialization_score(item.specializations, required_tags),
                order[item.id],
            ),
        )
        return best.id

    def _accept_preassigned(self, req: SessionRequirement) -> str | None:
        faculty_id = req.preassigned_faculty_id
        if faculty_id not in self.faculty_by_id:
            logger.warning(
                "Pre-assigned faculty %s is unknown | session=%s",
                faculty_id,
                req.describe(),
            )
            return None
        if not self.ledger.can_take(faculty_id, req.hours):
            logger.warning(
                "Pre-assigned faculty over weekly budget | session=%s faculty=%s load=%.2f remaining=%.2f needed=%.2f",
                req.describe(),
                faculty_id,
                self.ledger.load(faculty_id),
                self.ledger.remaining(faculty_id),
                req.hours,
            )
            return None
        return faculty_id

    def eligible_candidates(self, req: SessionRequirement) -> list[Faculty]:
        requirements = req.subject.faculty_requirements
        candidates: list[Faculty] = []
        for item in self.faculty:
            if req.department not in item.departments:
                continue
            if requirements.specializations and specialization_score(item.specializations, requirements.specializations) == 0:
                continue
            if not designation_meets(item.designation, requirements.min_designation):
                continue
            if not self.ledger.can_take(item.id, req.hours):
                continue
            candidates.append(item)
        return candidates
