from __future__ import annotations

from timetabler.schemas.faculty import Designation, Faculty

DESIGNATION_RANK = {
    Designation.adjunct: 1,
    Designation.lecturer: 1,
    Designation.assistant_professor: 2,
    Designation.associate_professor: 3,
    Designation.professor: 4,
}


def designation_meets(designation: Designation, minimum: Designation | None) -> bool:
    if minimum is None:
        return True
    return DESIGNATION_RANK[designation] >= DESIGNATION_RANK[minimum]


def specialization_score(faculty_tags: list[str], required_tags: list[str]) -> int:
    """Exact tag match scores 2, substring match (either direction) scores 1, summed per required tag."""
    score = 0
    normalized = [tag.strip().lower() for tag in faculty_tags if tag.strip()]
    for required in required_tags:
        wanted = required.strip().lower()
        if not wanted:
            continue
        if wanted in normalized:
            score += 2
        elif any(wanted in tag or tag in wanted for tag in normalized):
            score += 1
    return score


class FacultyLoadLedger:
    """Generation-scoped weekly hour totals per faculty member."""

    def __init__(self, faculty: list[Faculty]) -> None:
        self._limits = {item.id: float(item.weekly_load_limit) for item in faculty}
        self._hours: dict[str, float] = {item.id: 0.0 for item in faculty}

    def load(self, faculty_id: str) -> float:
        return self._hours.get(faculty_id, 0.0)

    def remaining(self, faculty_id: str) -> float:
        return self._limits.get(faculty_id, 0.0) - self.load(faculty_id)

    def can_take(self, faculty_id: str, hours: float) -> bool:
        # Small epsilon so 45-minute sessions do not trip on float rounding.
        return faculty_id in self._limits and self.remaining(faculty_id) + 1e-9 >= hours

    def charge(self, faculty_id: str, hours: float) -> None:
        self._hours[faculty_id] = self.load(faculty_id) + hours

    def snapshot(self) -> dict[str, float]:
        return {faculty_id: round(hours, 2) for faculty_id, hours in self._hours.items()}
