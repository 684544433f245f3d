import os

# The app's engine is built at import time; point it at SQLite before anything imports it.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["AUTO_CREATE_SCHEMA"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timetabler.api.deps import get_db
from timetabler.db.base import Base
from timetabler.main import app
from timetabler.services.catalog import AssignmentSpec, RoomSpec, SectionSpec
from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.scheduler import GreedyScheduler
from timetabler.services.time_grid import PeriodTiming, TimeGrid

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_grid(days=WEEKDAYS, periods_per_day=6, breaks=()):
    timings = tuple(PeriodTiming(period_number=p, is_break=True) for p in breaks)
    return TimeGrid(days=tuple(days), periods_per_day=periods_per_day, timings=timings)


def make_assignment(assignment_id="a1", **overrides):
    values = {
        "id": assignment_id,
        "teacher_id": "t1",
        "subject_id": "math",
        "section_ids": ("s1",),
        "sessions_per_week": 1,
        "session_length": 1,
    }
    values.update(overrides)
    return AssignmentSpec(**values)


def make_scheduler(
    assignments,
    *,
    grid=None,
    constraints=None,
    rooms=None,
    sections=None,
):
    if rooms is None:
        rooms = [RoomSpec(id="r1", name="Room 101", capacity=40)]
    if sections is None:
        section_ids = sorted({sid for item in assignments for sid in item.section_ids})
        sections = [SectionSpec(id=sid, name=sid.upper(), strength=30) for sid in section_ids]
    return GreedyScheduler(
        grid=grid or make_grid(),
        constraints=constraints if constraints is not None else ConstraintStore(),
        assignments=list(assignments),
        rooms=rooms,
        sections=sections,
    )
