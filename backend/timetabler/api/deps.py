from collections.abc import Generator

from sqlalchemy.orm import Session

from timetabler.core.config import Settings, get_settings
from timetabler.db.session import SessionLocal
from timetabler.services.timetable_generator import TimetableGenerator


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_generator() -> TimetableGenerator:
    settings: Settings = get_settings()
    return TimetableGenerator(settings=settings)
