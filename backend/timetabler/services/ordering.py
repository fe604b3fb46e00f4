from __future__ import annotations

from timetabler.schemas.room import Room
from timetabler.services.session_expander import SessionRequirement
from timetabler.services.suitability import suitable_rooms
from timetabler.services.time_grid import TimeGrid


def order_by_difficulty(
    requirements: list[SessionRequirement],
    grid: TimeGrid,
    rooms: list[Room],
) -> list[SessionRequirement]:
    """Most-constrained-first ordering so the search fails early on hard sessions."""

    def sort_key(req: SessionRequirement) -> tuple:
        return (
            -req.priority,
            len(grid.slots_for(req.duration)),  # Fewest slot options first
            len(suitable_rooms(rooms, req)),  # Fewest rooms first
            -req.duration,
        )

    # sorted() is stable, so equal keys keep expansion order.
    return sorted(requirements, key=sort_key)
