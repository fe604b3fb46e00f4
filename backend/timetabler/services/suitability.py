from __future__ import annotations

from timetabler.schemas.room import Room, RoomKind
from timetabler.schemas.subject import SubjectKind
from timetabler.services.session_expander import SessionRequirement

# Room kind a subject asks for when it does not name one explicitly.
PREFERRED_ROOM_KIND = {
    SubjectKind.theory: RoomKind.lecture_hall,
    SubjectKind.lab: RoomKind.laboratory,
    SubjectKind.tutorial: RoomKind.tutorial_room,
    SubjectKind.seminar: RoomKind.seminar_room,
    SubjectKind.project: None,
}

# required kind -> room kinds that can host it
ROOM_KIND_COMPATIBILITY = {
    RoomKind.lecture_hall: {RoomKind.lecture_hall, RoomKind.tutorial_room, RoomKind.auditorium},
    RoomKind.tutorial_room: {RoomKind.tutorial_room, RoomKind.lecture_hall},
    RoomKind.seminar_room: {RoomKind.seminar_room, RoomKind.tutorial_room},
    RoomKind.auditorium: {RoomKind.auditorium},
    RoomKind.laboratory: {RoomKind.laboratory, RoomKind.computer_lab},
    RoomKind.computer_lab: {RoomKind.computer_lab},
}


def required_room_kind(req: SessionRequirement) -> RoomKind | None:
    explicit = req.subject.classroom_requirements.kind
    if explicit is not None:
        return explicit
    return PREFERRED_ROOM_KIND[req.subject.kind]


def room_kind_compatible(room_kind: RoomKind, required: RoomKind | None) -> bool:
    if required is None:
        return True
    return room_kind in ROOM_KIND_COMPATIBILITY.get(required, {required})


def room_is_suitable(room: Room, req: SessionRequirement) -> bool:
    """Static room predicate: everything except occupancy and blocked windows."""
    if not room.is_active:
        return False
    requirements = req.subject.classroom_requirements
    if room.capacity < max(req.max_students, requirements.min_capacity):
        return False
    if not room_kind_compatible(room.kind, required_room_kind(req)):
        return False
    if not requirements.facilities.issubset(room.facilities):
        return False
    if room.department_restrictions and req.department not in room.department_restrictions:
        return False
    return True


def suitable_rooms(rooms: list[Room], req: SessionRequirement) -> list[Room]:
    return [room for room in rooms if room_is_suitable(room, req)]
