# barber_booking/db.py

import logging

from fastapi import Request
from sqlmodel import SQLModel, create_engine, Session

from . import models  # noqa: F401  registers the tables
from .config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)


def make_engine(database_url: str = DATABASE_URL):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI; wait on writers instead of failing
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, echo=DB_ECHO, connect_args=connect_args)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created")


# Dependency: one session per request
def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session


def get_ledger(request: Request):
    return request.app.state.ledger
