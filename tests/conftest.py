# tests/conftest.py

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from barber_booking.db import init_db, make_engine
from barber_booking.ledger import SlotLedger
from barber_booking.main import create_app
from barber_booking.models import Barber, Service
from barber_booking.schemas import WorkingHoursConfig

MONDAY = date(2026, 10, 19)
TUESDAY = MONDAY + timedelta(days=1)
SATURDAY = MONDAY + timedelta(days=5)
SUNDAY = MONDAY - timedelta(days=1)


def seed_barber(session: Session, **working_hours) -> Barber:
    barber = Barber(
        name="Sam",
        working_hours=WorkingHoursConfig(**working_hours).model_dump(),
    )
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


def seed_services(session: Session) -> list:
    haircut = Service(name="Haircut", duration=30, price=25)
    beard = Service(name="Beard trim", duration=20, price=15)
    session.add(haircut)
    session.add(beard)
    session.commit()
    session.refresh(haircut)
    session.refresh(beard)
    return [haircut, beard]


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ledger():
    return SlotLedger(slot_width=15)


@pytest.fixture
def barber(session):
    # Mon-Sat 09:00-18:00
    return seed_barber(session, working_days=[1, 2, 3, 4, 5, 6], default_start="09:00", default_end="18:00")


@pytest.fixture
def services(session):
    return seed_services(session)


@pytest.fixture
def week(session, ledger, barber):
    ledger.regenerate(session, barber, 7, today=MONDAY)
    return MONDAY


@pytest.fixture
def client(tmp_path):
    app = create_app(database_url=f"sqlite:///{tmp_path / 'api.db'}")
    with TestClient(app) as client:
        with Session(app.state.engine) as session:
            barber = seed_barber(session)
            services = seed_services(session)
            app.state.barber_id = barber.id
            app.state.service_ids = [service.id for service in services]
        yield client
