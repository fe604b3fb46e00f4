from timetabler.models.timetable import GeneratedTimetable  # noqa: F401
