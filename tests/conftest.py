import json
import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EVENTS_ENABLED", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon import main as main_module
from salon.database import build_engine, get_db, init_db
from salon.models.tables import (
    Clients,
    Locations,
    Services,
    ShiftSettings,
    WorkerServices,
    WorkerShifts,
    Workers,
)
from salon.services import events as events_module

DAY = "2025-03-14"


class RecordingRedis:
    """Stands in for the Redis client: keeps pushed events in memory."""

    def __init__(self):
        self.pushed: list[tuple[str, dict]] = []
        self.fail = False

    def rpush(self, key, value):
        if self.fail:
            raise ConnectionError("redis down")
        self.pushed.append((key, json.loads(value)))
        return len(self.pushed)

    def ping(self):
        return True

    def types(self) -> list[str]:
        return [event["type"] for _, event in self.pushed]


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis_events(monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(events_module, "redis_client", fake)
    monkeypatch.setattr(main_module, "redis_client", fake)
    return fake


@pytest.fixture
def client(session_factory, redis_events):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main_module.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(main_module.app)
    main_module.app.dependency_overrides.clear()


def seed_calendar(db) -> dict:
    """
    One location, two workers, shift settings and a shift plan for DAY.

    morning 08:00-14:00, afternoon 14:00-20:00
    anna: morning on DAY, offers haircut (30 → 40 min) and trim (20 min)
    ben:  afternoon on DAY, offers haircut
    """
    location = Locations(name="Centar", max_active_workers=3)
    db.add(location)
    db.flush()

    db.add(ShiftSettings(
        location_id=location.id,
        work_start="08:00",
        work_end="20:00",
        morning_start="08:00",
        morning_end="14:00",
        afternoon_start="14:00",
        afternoon_end="20:00",
    ))

    anna = Workers(location_id=location.id, name="Anna")
    ben = Workers(location_id=location.id, name="Ben")
    haircut = Services(name="Haircut")
    trim = Services(name="Trim")
    db.add_all([anna, ben, haircut, trim])
    db.flush()

    anna_haircut = WorkerServices(worker_id=anna.id, service_id=haircut.id, duration_min=30, price=25)
    anna_trim = WorkerServices(worker_id=anna.id, service_id=trim.id, duration_min=20, price=10)
    ben_haircut = WorkerServices(worker_id=ben.id, service_id=haircut.id, duration_min=30, price=30)
    db.add_all([anna_haircut, anna_trim, ben_haircut])

    db.add_all([
        WorkerShifts(location_id=location.id, worker_id=anna.id, date=DAY, shift_type="morning"),
        WorkerShifts(location_id=location.id, worker_id=ben.id, date=DAY, shift_type="afternoon"),
    ])

    customer = Clients(full_name="Mila Petrovic", phone="381641234567", email="mila@example.com")
    db.add(customer)
    db.commit()

    return {
        "location_id": location.id,
        "anna": anna.id,
        "ben": ben.id,
        "haircut": haircut.id,
        "trim": trim.id,
        "client_id": customer.id,
        "date": DAY,
    }


@pytest.fixture
def seed(db):
    return seed_calendar(db)


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file-backed database, so threads get separate connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'salon.db'}")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def file_seed(file_session_factory):
    session = file_session_factory()
    try:
        return seed_calendar(session)
    finally:
        session.close()
