from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterator
from dataclasses import dataclass, field
from time import perf_counter

from timetabler.schemas.faculty import Faculty
from timetabler.schemas.room import Room
from timetabler.schemas.settings import SchedulingConstraints, ranges_overlap
from timetabler.schemas.timetable import ReservedBooking
from timetabler.services.session_expander import SessionRequirement
from timetabler.services.suitability import suitable_rooms
from timetabler.services.time_grid import TimeGrid, TimeSlot

logger = logging.getLogger(__name__)

FACULTY = "faculty"
ROOM = "room"
BATCH = "batch"


@dataclass(frozen=True)
class Placement:
    requirement: SessionRequirement
    slot: TimeSlot
    room: Room


class SearchObserver:
    """Receives search events. The base class ignores them all."""

    def on_place(self, placement: Placement, depth: int) -> None:
        pass

    def on_backtrack(self, placement: Placement, depth: int) -> None:
        pass

    def on_skip(self, req: SessionRequirement, reason: str) -> None:
        pass

    def on_cutoff(self, constraint_checks: int, elapsed_seconds: float) -> None:
        pass


class LoggingSearchObserver(SearchObserver):
    def on_place(self, placement: Placement, depth: int) -> None:
        logger.debug(
            "place | depth=%s session=%s day=%s %s-%s room=%s faculty=%s",
            depth,
            placement.requirement.describe(),
            placement.slot.day,
            placement.slot.start_time,
            placement.slot.end_time,
            placement.room.label,
            placement.requirement.faculty_id,
        )

    def on_backtrack(self, placement: Placement, depth: int) -> None:
        logger.debug(
            "backtrack | depth=%s session=%s day=%s %s room=%s",
            depth,
            placement.requirement.describe(),
            placement.slot.day,
            placement.slot.start_time,
            placement.room.label,
        )

    def on_skip(self, req: SessionRequirement, reason: str) -> None:
        logger.debug("skip | session=%s reason=%s", req.describe(), reason)

    def on_cutoff(self, constraint_checks: int, elapsed_seconds: float) -> None:
        logger.debug("cutoff | checks=%s elapsed=%.3fs", constraint_checks, elapsed_seconds)


class OccupancyIndex:
    """Busy intervals per (resource kind, resource id, day).

    ``place`` and ``remove`` are exact inverses; reservations are permanent
    for the lifetime of the index.
    """

    def __init__(self) -> None:
        self._intervals: dict[tuple[str, str, str], list[tuple[int, int]]] = defaultdict(list)
        self._sessions: Counter[tuple[str, str, str]] = Counter()

    def reserve(self, booking: ReservedBooking) -> None:
        span = (booking.start_minutes, booking.end_minutes)
        if booking.room_id:
            self._intervals[(ROOM, booking.room_id, booking.day)].append(span)
        if booking.faculty_id:
            self._intervals[(FACULTY, booking.faculty_id, booking.day)].append(span)
        if booking.batch_id:
            self._intervals[(BATCH, booking.batch_id, booking.day)].append(span)

    def place(self, placement: Placement) -> None:
        for key in self._keys(placement):
            self._intervals[key].append((placement.slot.start, placement.slot.end))
            self._sessions[key] += 1

    def remove(self, placement: Placement) -> None:
        span = (placement.slot.start, placement.slot.end)
        for key in self._keys(placement):
            entries = self._intervals[key]
            entries.remove(span)
            if not entries:
                del self._intervals[key]
            self._sessions[key] -= 1
            if self._sessions[key] <= 0:
                del self._sessions[key]

    def is_free(self, kind: str, resource_id: str, day: str, start: int, end: int) -> bool:
        for busy_start, busy_end in self._intervals.get((kind, resource_id, day), ()):
            if ranges_overlap(busy_start, busy_end, start, end):
                return False
        return True

    def sessions_on(self, kind: str, resource_id: str, day: str) -> int:
        return self._sessions.get((kind, resource_id, day), 0)

    def is_empty(self) -> bool:
        return not self._sessions

    @staticmethod
    def _keys(placement: Placement) -> tuple[tuple[str, str, str], ...]:
        req = placement.requirement
        day = placement.slot.day
        return (
            (FACULTY, req.faculty_id, day),
            (ROOM, placement.room.id, day),
            (BATCH, req.batch.id, day),
        )


class SearchBudget:
    def __init__(self, max_constraint_checks: int, max_seconds: float) -> None:
        self.max_constraint_checks = max_constraint_checks
        self.max_seconds = max_seconds
        self.started_at = perf_counter()

    def elapsed(self) -> float:
        return perf_counter() - self.started_at

    def exhausted(self, constraint_checks: int) -> bool:
        return constraint_checks >= self.max_constraint_checks or self.elapsed() >= self.max_seconds


@dataclass
class SearchOutcome:
    placements: list[Placement] = field(default_factory=list)
    unplaceable: list[SessionRequirement] = field(default_factory=list)
    constraint_checks: int = 0
    backtracks: int = 0
    truncated: bool = False


@dataclass
class _Frame:
    index: int
    candidates: Iterator[Placement]
    current: Placement | None = None


class BacktrackingSearch:
    def __init__(
        self,
        *,
        constraints: SchedulingConstraints,
        grid: TimeGrid,
        rooms: list[Room],
        faculty: list[Faculty],
        reservations: list[ReservedBooking] | None = None,
        max_constraint_checks: int = 200_000,
        max_search_seconds: float = 10.0,
        observer: SearchObserver | None = None,
    ) -> None:
        self.constraints = constraints
        self.grid = grid
        self.rooms = rooms
        self.faculty_by_id = {item.id: item for item in faculty}
        self.max_constraint_checks = max_constraint_checks
        self.max_search_seconds = max_search_seconds
        self.observer = observer or SearchObserver()
        self.day_order = constraints.day_index

        self.occupancy = OccupancyIndex()
        for booking in reservations or []:
            self.occupancy.reserve(booking)

        self.room_blocks = {room.id: self._windows_by_day(room.blocked_windows) for room in rooms}
        self.faculty_blocks = {item.id: self._windows_by_day(item.blocked_windows) for item in faculty}
        self._batch_blocks: dict[str, dict[str, list[tuple[int, int]]]] = {}
        self._rooms_by_request: dict[int, list[Room]] = {}

        self.constraint_checks = 0
        self.backtracks = 0

    @staticmethod
    def _windows_by_day(windows) -> dict[str, list[tuple[int, int]]]:
        by_day: dict[str, list[tuple[int, int]]] = defaultdict(list)
        for window in windows:
            by_day[window.day].append((window.start_minutes, window.end_minutes))
        return dict(by_day)

    def _batch_windows(self, req: SessionRequirement) -> dict[str, list[tuple[int, int]]]:
        batch_id = req.batch.id
        if batch_id not in self._batch_blocks:
            self._batch_blocks[batch_id] = self._windows_by_day(req.batch.constraints.blocked_windows)
        return self._batch_blocks[batch_id]

    def rooms_for(self, req: SessionRequirement) -> list[Room]:
        if req.request_id not in self._rooms_by_request:
            self._rooms_by_request[req.request_id] = suitable_rooms(self.rooms, req)
        return self._rooms_by_request[req.request_id]

    def dead_end_reason(self, req: SessionRequirement) -> str | None:
        """Why ``req`` can never be placed regardless of the other sessions, or ``None``."""
        if not self.rooms_for(req):
            return "no_suitable_room"
        if not self.grid.slots_for(req.duration):
            return "no_matching_slot"
        return None

    # ------------------------------------------------------------------ checks

    def check_placement(self, req: SessionRequirement, slot: TimeSlot, room: Room) -> str | None:
        """Return the name of the first violated hard constraint, or ``None`` if the placement is valid."""
        self.constraint_checks += 1
        violation = self._check_slot(req, slot)
        if violation is not None:
            return violation
        return self._check_room(room, slot)

    def is_valid(self, req: SessionRequirement, slot: TimeSlot, room: Room) -> bool:
        return self.check_placement(req, slot, room) is None

    def _check_slot(self, req: SessionRequirement, slot: TimeSlot) -> str | None:
        day, start, end = slot.day, slot.start, slot.end
        faculty_id = req.faculty_id
        if not self.occupancy.is_free(FACULTY, faculty_id, day, start, end):
            return "faculty_clash"
        if not self.occupancy.is_free(BATCH, req.batch.id, day, start, end):
            return "batch_clash"

        batch_cap = req.batch.constraints.max_sessions_per_day or self.constraints.max_classes_per_day
        if self.occupancy.sessions_on(BATCH, req.batch.id, day) >= batch_cap:
            return "batch_daily_limit"

        lunch = self.grid.lunch_for(day)
        if lunch is not None and lunch.overlaps(start, end):
            return "lunch_break"

        for block_start, block_end in self.faculty_blocks.get(faculty_id, {}).get(day, ()):
            if ranges_overlap(start, end, block_start, block_end):
                return "faculty_blocked"

        faculty = self.faculty_by_id.get(faculty_id)
        if faculty is not None:
            if self.occupancy.sessions_on(FACULTY, faculty_id, day) >= faculty.max_sessions_per_day:
                return "faculty_daily_limit"
            window = faculty.availability.get(day)
            if window is not None and (start < window.start_minutes or end > window.end_minutes):
                return "faculty_unavailable"

        for block_start, block_end in self._batch_windows(req).get(day, ()):
            if ranges_overlap(start, end, block_start, block_end):
                return "batch_blocked"
        return None

    def _check_room(self, room: Room, slot: TimeSlot) -> str | None:
        if not self.occupancy.is_free(ROOM, room.id, slot.day, slot.start, slot.end):
            return "room_clash"
        for block_start, block_end in self.room_blocks.get(room.id, {}).get(slot.day, ()):
            if ranges_overlap(slot.start, slot.end, block_start, block_end):
                return "room_blocked"
        return None

    # --------------------------------------------------------------- candidates

    def ordered_slots(self, req: SessionRequirement) -> list[TimeSlot]:
        """Matching-duration slots, least-loaded days for the batch first."""
        slots = self.grid.slots_for(req.duration)
        batch_id = req.batch.id
        return sorted(
            slots,
            key=lambda slot: (
                self.occupancy.sessions_on(BATCH, batch_id, slot.day),
                self.day_order.get(slot.day, len(self.day_order)),
                slot.start,
            ),
        )

    def candidates(self, req: SessionRequirement) -> Iterator[Placement]:
        rooms = self.rooms_for(req)
        if not rooms:
            return
        for slot in self.ordered_slots(req):
            for room in rooms:
                if self.is_valid(req, slot, room):
                    yield Placement(requirement=req, slot=slot, room=room)

    # ------------------------------------------------------------------ search

    def _apply(self, placement: Placement, placements: list[Placement], depth: int) -> None:
        self.occupancy.place(placement)
        placements.append(placement)
        self.observer.on_place(placement, depth)

    def _undo(self, placement: Placement, placements: list[Placement]) -> None:
        popped = placements.pop()
        if popped is not placement:
            raise RuntimeError("Backtracking stack out of sync with placement list")
        self.occupancy.remove(placement)

    def run(self, requirements: list[SessionRequirement]) -> SearchOutcome:
        budget = SearchBudget(self.max_constraint_checks, self.max_search_seconds)
        placements: list[Placement] = []
        unplaceable: list[SessionRequirement] = []
        truncated = False

        # Sessions with no suitable room or no slot of their length never enter the DFS.
        searchable: list[SessionRequirement] = []
        for req in requirements:
            reason = self.dead_end_reason(req)
            if reason is None:
                searchable.append(req)
                continue
            unplaceable.append(req)
            self.observer.on_skip(req, reason)
            logger.warning(
                "Unplaceable session | session=%s faculty=%s duration=%s reason=%s",
                req.describe(),
                req.faculty_id,
                req.duration,
                reason,
            )
        requirements = searchable

        start = 0
        total = len(requirements)
        while start < total:
            frontier, cut = self._search_segment(requirements, start, placements, budget)
            if frontier >= total:
                break
            if cut:
                truncated = True
                self.observer.on_cutoff(self.constraint_checks, budget.elapsed())
                logger.warning(
                    "Search budget exhausted | checks=%s elapsed=%.2fs placed=%s remaining=%s; finishing greedily",
                    self.constraint_checks,
                    budget.elapsed(),
                    len(placements),
                    total - frontier,
                )
                unplaceable.extend(self._place_greedily(requirements[frontier:], placements))
                break
            req = requirements[frontier]
            unplaceable.append(req)
            self.observer.on_skip(req, "unplaceable")
            logger.warning(
                "Unplaceable session | session=%s faculty=%s duration=%s rooms=%s",
                req.describe(),
                req.faculty_id,
                req.duration,
                len(self.rooms_for(req)),
            )
            start = frontier + 1

        return SearchOutcome(
            placements=placements,
            unplaceable=unplaceable,
            constraint_checks=self.constraint_checks,
            backtracks=self.backtracks,
            truncated=truncated,
        )

    def _search_segment(
        self,
        requirements: list[SessionRequirement],
        start: int,
        placements: list[Placement],
        budget: SearchBudget,
    ) -> tuple[int, bool]:
        """Depth-first search over ``requirements[start:]`` with everything before ``start`` frozen.

        Returns ``(frontier, cut)``. On success ``frontier == len(requirements)``.
        Otherwise the deepest partial schedule reached is left applied and
        ``frontier`` is the first requirement it could not place; ``cut`` tells
        whether the budget ran out before the segment was exhausted.
        """
        total = len(requirements)
        base = len(placements)
        best_frontier = start
        best_tail: list[Placement] = []
        stack = [_Frame(index=start, candidates=self.candidates(requirements[start]))]
        cut = False

        while stack:
            if budget.exhausted(self.constraint_checks):
                cut = True
                break
            frame = stack[-1]
            if frame.current is not None:
                self._undo(frame.current, placements)
                self.backtracks += 1
                self.observer.on_backtrack(frame.current, frame.index)
                frame.current = None

            placement = next(frame.candidates, None)
            if placement is None:
                stack.pop()
                continue

            self._apply(placement, placements, frame.index)
            frame.current = placement
            next_index = frame.index + 1
            if next_index > best_frontier:
                best_frontier = next_index
                best_tail = placements[base:]
            if next_index == total:
                return total, False
            stack.append(_Frame(index=next_index, candidates=self.candidates(requirements[next_index])))

        for frame in reversed(stack):
            if frame.current is not None:
                self._undo(frame.current, placements)
        for placement in best_tail:
            self.occupancy.place(placement)
            placements.append(placement)
        return best_frontier, cut

    def _place_greedily(
        self,
        requirements: list[SessionRequirement],
        placements: list[Placement],
    ) -> list[SessionRequirement]:
        skipped: list[SessionRequirement] = []
        for req in requirements:
            placement = next(self.candidates(req), None)
            if placement is None:
                skipped.append(req)
                self.observer.on_skip(req, "unplaceable")
                continue
            self._apply(placement, placements, len(placements))
        return skipped
